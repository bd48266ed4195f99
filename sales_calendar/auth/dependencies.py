from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWTError
from pydantic import BaseModel

from sales_calendar.auth import jwt_handler
from sales_calendar.auth.access import AccessPolicy, check_access, normalize_email
from sales_calendar.core import config
from sales_calendar.core.errors import Unauthenticated, Unauthorized

security = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    email: str
    role: str


def get_access_policy() -> AccessPolicy:
    return AccessPolicy(
        authorized_emails=config.AUTHORIZED_EMAILS,
        admin_emails=config.ADMIN_EMAILS,
    )


def get_current_email(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """Email of the signed-in identity, or None when no token was sent."""
    if credentials is None:
        return None

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    email = payload.get("sub")
    if not email:
        raise HTTPException(status_code=401, detail="Invalid token subject")
    return normalize_email(email)


def require_authorized_user(
    email: str | None = Depends(get_current_email),
    policy: AccessPolicy = Depends(get_access_policy),
) -> CurrentUser:
    try:
        role = check_access(email, policy)
    except Unauthenticated as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except Unauthorized as exc:
        raise HTTPException(
            status_code=403,
            detail={"error": "Access Restricted", "message": str(exc), "sign_out_url": config.SIGN_OUT_PATH},
        ) from exc
    return CurrentUser(email=email, role=role)
