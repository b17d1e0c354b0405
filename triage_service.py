"""
Status changes and deletions of offers by the owner of their brief.

Any status may move to any other status. The only thing that can refuse a
change is ownership, checked by ``authorization`` before every write.
Bulk requests are all-or-nothing: the check and the write run in one
transaction, and a single foreign or missing id rejects the whole batch.
"""
import logging
from typing import List, Sequence

import storage
from authorization import AuthOutcome, authorize_bulk, authorize_single
from errors import ForbiddenError, NotFoundError, ValidationError
from models import Offer, OFFER_STATUSES, EVENT_OFFER_DELETED, EVENT_OFFER_STATUS_CHANGED
from utils import unique_ids

logger = logging.getLogger(__name__)


def _check_status(status: str) -> None:
    if status not in OFFER_STATUSES:
        raise ValidationError("Unknown offer status", field="status")


def _check_ids(offer_ids: Sequence[int]) -> List[int]:
    ids = unique_ids(offer_ids or [])
    if not ids:
        raise ValidationError("offerIds must not be empty", field="offerIds")
    return ids


def _raise_for(outcome: AuthOutcome) -> None:
    if outcome is AuthOutcome.NOT_FOUND:
        raise NotFoundError("Offer not found")
    if outcome is AuthOutcome.FORBIDDEN:
        raise ForbiddenError("You do not own this offer")


def set_status(account_id: int, offer_id: int, status: str) -> Offer:
    _check_status(status)
    with storage.atomic():
        _raise_for(authorize_single(offer_id, account_id))
        offer = storage.find_offer_by_id(offer_id)
        previous = offer.status
        offer = storage.set_offer_status(offer_id, status)
        storage.log_event(
            EVENT_OFFER_STATUS_CHANGED,
            user_id=account_id,
            metadata={"offerId": offer.id, "projectId": offer.brief_id, "from": previous, "to": status},
        )
    return offer


def delete_one(account_id: int, offer_id: int) -> None:
    with storage.atomic():
        _raise_for(authorize_single(offer_id, account_id))
        offer = storage.find_offer_by_id(offer_id)
        brief_id = offer.brief_id
        storage.delete_offer(offer_id)
        storage.log_event(
            EVENT_OFFER_DELETED,
            user_id=account_id,
            metadata={"offerId": offer_id, "projectId": brief_id},
        )


def set_status_bulk(account_id: int, offer_ids: Sequence[int], status: str) -> List[Offer]:
    ids = _check_ids(offer_ids)
    _check_status(status)
    with storage.atomic():
        if not authorize_bulk(ids, account_id, lock=True):
            logger.warning("Rejected bulk status change by %s on %d offers", account_id, len(ids))
            raise ForbiddenError("You do not own all of the selected offers")
        offers = storage.set_offer_status_many(ids, status)
        storage.log_event(
            EVENT_OFFER_STATUS_CHANGED,
            user_id=account_id,
            metadata={"offerIds": ids, "status": status, "bulk": True},
        )
    logger.info("Account %s set %d offers to %s", account_id, len(offers), status)
    return offers


def delete_bulk(account_id: int, offer_ids: Sequence[int]) -> int:
    ids = _check_ids(offer_ids)
    with storage.atomic():
        if not authorize_bulk(ids, account_id, lock=True):
            logger.warning("Rejected bulk delete by %s on %d offers", account_id, len(ids))
            raise ForbiddenError("You do not own all of the selected offers")
        deleted = storage.delete_offers_many(ids)
        storage.log_event(
            EVENT_OFFER_DELETED,
            user_id=account_id,
            metadata={"offerIds": ids, "count": deleted, "bulk": True},
        )
    logger.info("Account %s deleted %d offers", account_id, deleted)
    return deleted
