"""Allow-list checks for signed-in identities."""

from collections.abc import Iterable

from pydantic import BaseModel, field_validator

from sales_calendar.core.errors import Unauthenticated, Unauthorized

ROLE_ADMIN = 'admin'
ROLE_USER = 'user'
ROLE_UNAUTHORIZED = 'unauthorized'


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccessPolicy(BaseModel):
    """Authorized addresses and the admin subset; admin currently gates nothing."""
    authorized_emails: frozenset[str] = frozenset()
    admin_emails: frozenset[str] = frozenset()

    @field_validator('authorized_emails', 'admin_emails', mode='before')
    @classmethod
    def normalize_emails(cls, value: Iterable[str]) -> frozenset[str]:
        return frozenset(normalize_email(email) for email in value if email and email.strip())


def is_user_authorized(email: str, policy: AccessPolicy) -> bool:
    return normalize_email(email) in policy.authorized_emails


def get_user_role(email: str, policy: AccessPolicy) -> str:
    if not is_user_authorized(email, policy):
        return ROLE_UNAUTHORIZED
    return ROLE_ADMIN if normalize_email(email) in policy.admin_emails else ROLE_USER


def check_access(email: str | None, policy: AccessPolicy) -> str:
    """Role for ``email``, raising when there is no identity or it is not allowed."""
    if not email:
        raise Unauthenticated('Sign in to access the scheduling system.')

    role = get_user_role(email, policy)
    if role == ROLE_UNAUTHORIZED:
        raise Unauthorized(normalize_email(email))
    return role
