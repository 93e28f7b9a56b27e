from __future__ import annotations

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from candor.core.errors import AuthenticationError, ConflictError, NotFoundError
from candor.core.security import get_password_hash, verify_password
from candor.models.profile import Account, Profile, UserRole
from candor.schemas.profile import ProfileUpdate, SignUpMetadata, SignUpPayload


def _display_name_for(email: str, metadata: SignUpMetadata) -> str:
    if metadata.display_name and metadata.display_name.strip():
        return metadata.display_name.strip()
    return email.split("@", 1)[0]


class ProfileService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def sign_up(self, payload: SignUpPayload) -> Profile:
        email = payload.email.lower()
        if self._find_account(email) is not None:
            raise ConflictError("An account with this email already exists")

        account = Account(email=email, hashed_password=get_password_hash(payload.password))
        self.session.add(account)
        self.session.flush()

        profile = self.create_profile_for(account, payload.metadata)
        logger.info("Registered account id={account_id} role={role}", account_id=account.id, role=profile.role)
        return profile

    def create_profile_for(self, account: Account, metadata: SignUpMetadata | None = None) -> Profile:
        """Mirror a freshly created account into ``profiles``."""
        metadata = metadata or SignUpMetadata()
        profile = Profile(
            user_id=account.id,
            email=account.email,
            role=(metadata.role or UserRole.EMPLOYEE).value,
            display_name=_display_name_for(account.email, metadata),
            first_name=metadata.first_name,
            last_name=metadata.last_name,
            company=metadata.company,
            job_title=metadata.job_title,
        )
        self.session.add(profile)
        self.session.flush()
        return profile

    def authenticate(self, *, email: str, password: str) -> Profile:
        account = self._find_account(email.lower())
        if account is None or not verify_password(password, account.hashed_password):
            logger.warning("Failed sign-in for {email}", email=email)
            raise AuthenticationError("Invalid email or password")
        return self.get_profile(account.id)

    def get_profile(self, user_id: str) -> Profile:
        profile = self.session.scalars(select(Profile).where(Profile.user_id == user_id)).first()
        if profile is not None:
            return profile

        account = self.session.get(Account, user_id)
        if account is None:
            raise NotFoundError("Account not found")
        # Accounts created before the profile mirror existed get a default one.
        logger.info("Creating missing profile for account id={account_id}", account_id=user_id)
        return self.create_profile_for(account)

    def update_profile(self, user_id: str, changes: ProfileUpdate) -> Profile:
        profile = self.get_profile(user_id)
        for field, value in changes.model_dump(exclude_unset=True).items():
            if isinstance(value, str):
                value = value.strip() or None
            setattr(profile, field, value)
        self.session.flush()
        self.session.refresh(profile)
        logger.info("Updated profile for user id={user_id}", user_id=user_id)
        return profile

    def _find_account(self, email: str) -> Account | None:
        stmt = select(Account).where(func.lower(Account.email) == email.lower())
        return self.session.scalars(stmt).first()
