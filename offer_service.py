"""Anonymous offer submission and the owner's offer listing."""
import logging
from typing import List, Optional

import storage
from errors import NotFoundError, UnauthorizedError, ValidationError
from models import Brief, Offer, OFFER_STATUSES, EVENT_OFFER_SUBMITTED
from utils import extract_number

logger = logging.getLogger(__name__)

SORT_FIELDS = ("date", "price", "deadline")
SORT_DIRS = ("asc", "desc")


def submit_offer(token: str, fields: dict) -> Offer:
    """
    Create an offer against the brief behind ``token``.
    Unknown tokens are a plain 404. The new offer always starts as "new".
    """
    with storage.atomic():
        brief = storage.find_brief_by_token(token)
        if brief is None:
            raise NotFoundError("Project not found")
        offer = storage.create_offer(brief.id, fields)
        storage.log_event(
            EVENT_OFFER_SUBMITTED,
            user_id=None,
            metadata={"offerId": offer.id, "projectId": brief.id},
        )
    logger.info("Offer %s submitted to brief %s", offer.id, brief.id)
    return offer


def get_owned_brief(brief_id: int, account_id: int) -> Brief:
    brief = storage.find_brief_by_id(brief_id)
    if brief is None:
        raise NotFoundError("Project not found")
    if brief.owner_id != account_id:
        # 401 here, kept for client compatibility
        raise UnauthorizedError()
    return brief


def sort_offers(offers: List[Offer], field: str = "date", direction: str = "desc") -> List[Offer]:
    if field == "price":
        key = lambda o: extract_number(o.price)
    elif field == "deadline":
        key = lambda o: o.deadline or ""
    else:
        key = lambda o: o.id
    return sorted(offers, key=key, reverse=(direction == "desc"))


def list_offers(brief_id: int,
                status: Optional[str] = None,
                sort: Optional[str] = None,
                direction: Optional[str] = None) -> List[Offer]:
    if status and status not in OFFER_STATUSES:
        raise ValidationError("Unknown offer status", field="status")
    if sort and sort not in SORT_FIELDS:
        raise ValidationError("Unknown sort field", field="sort")
    if direction and direction not in SORT_DIRS:
        raise ValidationError("Unknown sort direction", field="dir")

    offers = storage.list_offers_by_brief(brief_id)
    if status:
        offers = [o for o in offers if o.status == status]
    if sort is None and direction is None:
        # store order is already newest first
        return offers
    return sort_offers(offers, sort or "date", direction or "desc")
