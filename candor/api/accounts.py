from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from candor.api.deps import get_capabilities, get_current_profile
from candor.core.security import create_access_token
from candor.models.profile import Profile
from candor.schemas import (
    CapabilitiesRead,
    ProfileRead,
    ProfileUpdate,
    SessionResponse,
    SignInPayload,
    SignUpPayload,
)
from candor.services.db import get_db
from candor.services.policy import Capabilities
from candor.services.profiles import ProfileService

router = APIRouter()


def _session_for(profile: Profile) -> SessionResponse:
    return SessionResponse(
        access_token=create_access_token(profile.user_id),
        profile=ProfileRead.model_validate(profile),
    )


@router.post("/auth/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def sign_up(payload: SignUpPayload, session: Session = Depends(get_db)):
    profile = ProfileService(session=session).sign_up(payload)
    return _session_for(profile)


@router.post("/auth/signin", response_model=SessionResponse)
def sign_in(payload: SignInPayload, session: Session = Depends(get_db)):
    profile = ProfileService(session=session).authenticate(email=payload.email, password=payload.password)
    return _session_for(profile)


@router.get("/profiles/me", response_model=ProfileRead)
def read_my_profile(profile: Profile = Depends(get_current_profile)):
    return profile


@router.patch("/profiles/me", response_model=ProfileRead)
def update_my_profile(
    changes: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    session: Session = Depends(get_db),
):
    return ProfileService(session=session).update_profile(profile.user_id, changes)


@router.get("/profiles/me/capabilities", response_model=CapabilitiesRead)
def read_my_capabilities(
    _profile: Profile = Depends(get_current_profile),
    capabilities: Capabilities = Depends(get_capabilities),
):
    return CapabilitiesRead.model_validate(capabilities)
