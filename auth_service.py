"""
Login policy on top of the account store.

First use of a handle is an implicit signup. A known handle is checked for
the blocked flag, then for the password.
"""
import logging
from dataclasses import dataclass
from functools import wraps

from flask import current_app, g
from werkzeug.security import check_password_hash, generate_password_hash

import storage
from errors import AuthError, ConflictError, ForbiddenError, UnauthorizedError, ValidationError
from models import Account, ROLE_ADMIN, ROLE_STANDARD, EVENT_USER_LOGIN

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    created: bool
    account: Account


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def check_new_password(password: str) -> None:
    min_len = current_app.config.get("PASSWORD_MIN_LENGTH", 6)
    if len(password) < min_len:
        raise ValidationError(f"Password must be at least {min_len} characters", field="password")


def role_for_new_account(handle: str) -> str:
    # Bootstrap convenience: the configured handle becomes an administrator
    # when its account is created. Existing accounts are never promoted here.
    bootstrap = current_app.config.get("BOOTSTRAP_ADMIN_HANDLE")
    if bootstrap and handle == bootstrap:
        return ROLE_ADMIN
    return ROLE_STANDARD


def _verify(account: Account, password: str) -> Account:
    if account.is_blocked:
        logger.warning("Blocked account %s tried to log in", account.id)
        raise AuthError("Account is blocked", status_code=403)
    if not check_password_hash(account.password_hash, password):
        raise AuthError("Invalid username or password")
    return account


def resolve_or_create_account(handle: str, password: str) -> Resolution:
    account = storage.find_account_by_handle(handle)
    if account is not None:
        return Resolution(created=False, account=_verify(account, password))

    check_new_password(password)
    role = role_for_new_account(handle)
    try:
        account = storage.create_account(handle, hash_password(password), role=role)
    except ConflictError:
        # someone else created the same handle between our lookup and insert
        account = storage.find_account_by_handle(handle)
        if account is None:
            raise
        return Resolution(created=False, account=_verify(account, password))

    if role == ROLE_ADMIN:
        logger.warning("Bootstrap admin handle %r provisioned as administrator", handle)
    logger.info("Provisioned account %s (%s)", account.id, handle)
    return Resolution(created=True, account=account)


def login(handle: str, password: str) -> Resolution:
    with storage.atomic():
        resolution = resolve_or_create_account(handle, password)
        storage.record_login(resolution.account.id)
        storage.log_event(
            EVENT_USER_LOGIN,
            user_id=resolution.account.id,
            metadata={"created": resolution.created},
        )
    logger.info("Account %s logged in", resolution.account.id)
    return resolution


# ---------------- route guards ----------------

def _check_session() -> Account:
    if g.get("account_blocked"):
        raise AuthError("Account is blocked", status_code=403)
    account = g.get("account")
    if account is None:
        raise UnauthorizedError()
    return account


def require_login(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        _check_session()
        return view(*args, **kwargs)
    return wrapper


def require_admin(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        account = _check_session()
        if not account.is_admin:
            raise ForbiddenError("Administrator access required")
        return view(*args, **kwargs)
    return wrapper
