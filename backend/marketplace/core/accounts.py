"""Accounts — login upsert and payment-account linkage on the user record.

Invariants:
    - Login matches by phone first, then by name; no credential verification
    - A new user starts with the default score, zero reviews and no payment account
    - Exactly one audit entry per call (signup or login)
"""

from dataclasses import dataclass

from marketplace.core.audit_trail import append_audit
from marketplace.core.domain_types import AuditAction
from marketplace.core.errors import ResourceNotFoundError
from marketplace.core.ledger_types import LedgerSnapshot, Stamp, User


@dataclass(frozen=True)
class LoginResult:
    user: User
    created: bool


def login_or_signup(
    snapshot: LedgerSnapshot, name: str | None, phone: str | None, stamp: Stamp,
) -> LoginResult:
    user = None
    if phone:
        user = next((u for u in snapshot.users if u.phone == phone), None)
    if user is None and name:
        user = next((u for u in snapshot.users if u.name == name), None)

    if user is not None:
        append_audit(snapshot, AuditAction.LOGIN, f"user {user.id}", user.id, stamp)
        return LoginResult(user=user, created=False)

    user = User(id=stamp.new_id(6), name=name or "Guest", phone=phone or "")
    snapshot.users.append(user)
    append_audit(snapshot, AuditAction.SIGNUP, f"new user {user.id}", user.id, stamp)
    return LoginResult(user=user, created=True)


def require_user(snapshot: LedgerSnapshot, user_id: str) -> User:
    user = snapshot.find_user(user_id)
    if user is None:
        raise ResourceNotFoundError("User", user_id)
    return user


def attach_payment_account(
    snapshot: LedgerSnapshot, user_id: str, account_id: str, stamp: Stamp,
) -> User:
    """Store a freshly created connected account; keeps an existing one."""
    user = require_user(snapshot, user_id)
    if user.stripe_account_id:
        return user
    user.stripe_account_id = account_id
    append_audit(
        snapshot, AuditAction.CONNECT_ACCOUNT_CREATED, account_id, user_id, stamp,
    )
    return user
