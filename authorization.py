"""
Ownership checks for offers.

An offer belongs to whoever owns its parent brief. Nothing here raises for
"not the owner"; callers map the outcome to an HTTP error themselves.
"""
from enum import Enum
from typing import Sequence

from sqlalchemy import select

from models import db, Brief, Offer
from utils import is_row_id, unique_ids


class AuthOutcome(Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


def authorize_single(offer_id: int, account_id: int) -> AuthOutcome:
    if not is_row_id(offer_id):
        return AuthOutcome.NOT_FOUND
    row = db.session.execute(
        select(Offer.id, Brief.owner_id)
        .join(Brief, Offer.brief_id == Brief.id)
        .where(Offer.id == offer_id)
    ).first()
    if row is None:
        return AuthOutcome.NOT_FOUND
    if row.owner_id != account_id:
        return AuthOutcome.FORBIDDEN
    return AuthOutcome.OK


def authorize_bulk(offer_ids: Sequence[int], account_id: int, lock: bool = False) -> bool:
    """
    All-or-nothing: True only when every requested id exists and every one
    of them sits under a brief owned by ``account_id``.

    With ``lock=True`` the offer rows are selected FOR UPDATE, so the check
    and the following write see the same rows inside one transaction.
    """
    ids = unique_ids(offer_ids)
    if not ids or not all(is_row_id(i) for i in ids):
        return False

    q = (
        select(Offer.id, Brief.owner_id)
        .join(Brief, Offer.brief_id == Brief.id)
        .where(Offer.id.in_(ids))
    )
    if lock:
        q = q.with_for_update(of=Offer)

    pairs = db.session.execute(q).all()
    if len(pairs) != len(ids):
        return False
    return all(owner_id == account_id for _, owner_id in pairs)
