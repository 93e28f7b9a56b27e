from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from candor.core.config import get_settings
from candor.core.errors import AuthenticationError, NotFoundError
from candor.core.security import decode_access_token
from candor.models.profile import Profile
from candor.services.db import get_db
from candor.services.policy import Capabilities, capabilities_for
from candor.services.profiles import ProfileService

bearer_scheme = HTTPBearer(auto_error=False)


def require_api_key(apikey: str | None = Header(default=None)) -> None:
    expected = get_settings().public_api_key
    if expected and apikey != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


def get_optional_profile(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_db),
) -> Profile | None:
    if credentials is None:
        return None
    user_id = decode_access_token(credentials.credentials)
    try:
        return ProfileService(session=session).get_profile(user_id)
    except NotFoundError as exc:
        raise AuthenticationError("Unknown account") from exc


def get_current_profile(profile: Profile | None = Depends(get_optional_profile)) -> Profile:
    if profile is None:
        raise AuthenticationError("Sign in required")
    return profile


def get_capabilities(profile: Profile | None = Depends(get_optional_profile)) -> Capabilities:
    return capabilities_for(profile)
