"""
Data-access layer for accounts, briefs, offers and activity events.

Functions here only flush. Committing is the caller's job, usually through
``atomic()``, so that several steps can share one transaction.
"""
import logging
import secrets
from contextlib import contextmanager
from typing import List, Optional, Sequence, Tuple

from flask import current_app
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from errors import ConflictError, NotFoundError
from models import (
    db, Account, Brief, Offer, ActivityEvent,
    ROLE_STANDARD, BRIEF_STATUS_OPEN, OFFER_NEW, DEFAULT_TEMPLATE,
)
from utils import is_row_id, utcnow

logger = logging.getLogger(__name__)


@contextmanager
def atomic():
    """Commit on success, roll back on any error and re-raise."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


# ---------------- Accounts ----------------

def find_account_by_handle(handle: str) -> Optional[Account]:
    return Account.query.filter_by(username=handle).first()


def find_account_by_id(account_id: int) -> Optional[Account]:
    if not is_row_id(account_id):
        return None
    return db.session.get(Account, account_id)


def create_account(handle: str, password_digest: str, role: str = ROLE_STANDARD) -> Account:
    account = Account(
        username=handle,
        password_hash=password_digest,
        role=role,
        created_at=utcnow(),
    )
    db.session.add(account)
    try:
        db.session.flush()
    except IntegrityError as e:
        db.session.rollback()
        logger.info("Handle %r taken by a concurrent signup", handle)
        raise ConflictError("Account already exists") from e
    return account


def record_login(account_id: int) -> None:
    db.session.execute(
        update(Account)
        .where(Account.id == account_id)
        .values(login_count=Account.login_count + 1, last_login_at=utcnow())
    )


def _get_account_or_404(account_id: int) -> Account:
    account = find_account_by_id(account_id)
    if account is None:
        raise NotFoundError("User not found")
    return account


def set_blocked(account_id: int, blocked: bool) -> Account:
    account = _get_account_or_404(account_id)
    account.is_blocked = blocked
    account.blocked_at = utcnow() if blocked else None
    db.session.flush()
    return account


def set_password_digest(account_id: int, digest: str) -> Account:
    account = _get_account_or_404(account_id)
    account.password_hash = digest
    db.session.flush()
    return account


def set_role(account_id: int, role: str) -> Account:
    account = _get_account_or_404(account_id)
    account.role = role
    db.session.flush()
    return account


def list_accounts(search: Optional[str] = None,
                  blocked: Optional[bool] = None,
                  role: Optional[str] = None) -> List[Account]:
    q = Account.query
    if search:
        q = q.filter(Account.username.ilike(f"%{search}%"))
    if blocked is not None:
        q = q.filter(Account.is_blocked.is_(blocked))
    if role:
        q = q.filter(Account.role == role)
    return q.order_by(Account.created_at.desc(), Account.id.desc()).all()


# ---------------- Briefs ----------------

def generate_public_token() -> str:
    nbytes = current_app.config.get("PUBLIC_TOKEN_BYTES", 12)
    return secrets.token_urlsafe(nbytes)


def create_brief(owner_id: int, fields: dict) -> Brief:
    brief = Brief(
        owner_id=owner_id,
        title=fields["title"],
        description=fields["description"],
        expected_result=fields["expected_result"],
        deadline=fields["deadline"],
        budget=fields.get("budget") or None,
        criteria=list(fields.get("criteria") or []),
        template=fields.get("template") or DEFAULT_TEMPLATE,
        status=BRIEF_STATUS_OPEN,
        public_token=generate_public_token(),
        created_at=utcnow(),
    )
    db.session.add(brief)
    db.session.flush()
    return brief


def list_briefs_by_owner(owner_id: int) -> List[Tuple[Brief, int]]:
    rows = db.session.execute(
        select(Brief, func.count(Offer.id))
        .outerjoin(Offer, Offer.brief_id == Brief.id)
        .where(Brief.owner_id == owner_id)
        .group_by(Brief.id)
        .order_by(Brief.created_at.desc(), Brief.id.desc())
    ).all()
    return [(brief, int(count)) for brief, count in rows]


def find_brief_by_id(brief_id: int) -> Optional[Brief]:
    if not is_row_id(brief_id):
        return None
    return db.session.get(Brief, brief_id)


def find_brief_by_token(token: str) -> Optional[Brief]:
    if not token:
        return None
    return Brief.query.filter_by(public_token=token).first()


# ---------------- Offers ----------------

OFFER_FIELDS = (
    "freelancer_name", "contact", "portfolio", "experience", "skills",
    "approach", "deadline", "price", "guarantees", "risks",
)


def create_offer(brief_id: int, fields: dict) -> Offer:
    values = {k: fields.get(k) for k in OFFER_FIELDS}
    # status is never taken from the caller
    offer = Offer(brief_id=brief_id, status=OFFER_NEW, created_at=utcnow(), **values)
    db.session.add(offer)
    db.session.flush()
    return offer


def list_offers_by_brief(brief_id: int) -> List[Offer]:
    return (
        Offer.query.filter_by(brief_id=brief_id)
        .order_by(Offer.created_at.desc(), Offer.id.desc())
        .all()
    )


def find_offer_by_id(offer_id: int) -> Optional[Offer]:
    if not is_row_id(offer_id):
        return None
    return db.session.get(Offer, offer_id)


def find_offer_with_brief(offer_id: int) -> Optional[Tuple[Offer, Brief]]:
    if not is_row_id(offer_id):
        return None
    row = db.session.execute(
        select(Offer, Brief)
        .join(Brief, Offer.brief_id == Brief.id)
        .where(Offer.id == offer_id)
    ).first()
    if row is None:
        return None
    return row[0], row[1]


def set_offer_status(offer_id: int, status: str) -> Offer:
    offer = find_offer_by_id(offer_id)
    if offer is None:
        raise NotFoundError("Offer not found")
    offer.status = status
    db.session.flush()
    return offer


def delete_offer(offer_id: int) -> None:
    offer = find_offer_by_id(offer_id)
    if offer is None:
        raise NotFoundError("Offer not found")
    db.session.delete(offer)
    db.session.flush()


def set_offer_status_many(offer_ids: Sequence[int], status: str) -> List[Offer]:
    """One UPDATE for the whole batch. Returns the updated offers ordered by id."""
    if not offer_ids:
        return []
    db.session.execute(
        update(Offer)
        .where(Offer.id.in_(list(offer_ids)))
        .values(status=status)
        .execution_options(synchronize_session="fetch")
    )
    return Offer.query.filter(Offer.id.in_(list(offer_ids))).order_by(Offer.id).all()


def delete_offers_many(offer_ids: Sequence[int]) -> int:
    if not offer_ids:
        return 0
    result = db.session.execute(
        delete(Offer)
        .where(Offer.id.in_(list(offer_ids)))
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


# ---------------- Activity ----------------

def log_event(event_type: str, user_id: Optional[int] = None, metadata: Optional[dict] = None) -> ActivityEvent:
    event = ActivityEvent(
        user_id=user_id,
        event_type=event_type,
        meta=metadata,
        created_at=utcnow(),
    )
    db.session.add(event)
    db.session.flush()
    return event
