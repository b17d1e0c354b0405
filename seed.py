import logging

import storage
from auth_service import hash_password
from models import EVENT_PROJECT_CREATED, EVENT_OFFER_SUBMITTED

logger = logging.getLogger(__name__)

SAMPLE_PASSWORD = "customer1"


def seed() -> bool:
    """
    Create a sample client with one brief and one offer.
    Returns False when the sample client already exists.
    """
    if storage.find_account_by_handle("customer1") is not None:
        logger.info("Database already seeded.")
        return False

    with storage.atomic():
        client = storage.create_account("customer1", hash_password(SAMPLE_PASSWORD))
        brief = storage.create_brief(client.id, {
            "title": "MVP Marketplace Platform",
            "description": "Need a simple platform for projects and offers.",
            "expected_result": "A working MVP with a JSON API and a small dashboard.",
            "deadline": "3 days",
            "budget": "$1000",
            "criteria": ["Speed", "Quality"],
            "template": "website",
        })
        storage.log_event(EVENT_PROJECT_CREATED, user_id=client.id, metadata={"projectId": brief.id})

        offer = storage.create_offer(brief.id, {
            "freelancer_name": "Alice Dev",
            "contact": "alice@example.com",
            "approach": "Flask API first, then the dashboard on top of it.",
            "deadline": "2 days",
            "price": "$900",
            "guarantees": "Bug fixes for a month",
            "risks": "Scope creep",
        })
        storage.log_event(EVENT_OFFER_SUBMITTED, metadata={"offerId": offer.id, "projectId": brief.id})

    logger.info("Seeding complete! Public link token: %s", brief.public_token)
    return True


if __name__ == "__main__":
    from app import create_app

    with create_app().app_context():
        seed()
