"""
Access rules for Candor rows.

Reference tables and issues are world readable; tracking relies on the secrecy of
the anonymous token, not on row filtering. Writes other than issue creation are
limited to profiles holding a privileged role. ``Capabilities`` carries that
decision so callers can hide actions up front instead of failing afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass

from candor.core.config import get_settings
from candor.core.errors import PermissionDeniedError
from candor.models.profile import Profile


@dataclass(frozen=True)
class Capabilities:
    user_id: str | None = None
    role: str | None = None
    can_update_issues: bool = False
    can_post_updates: bool = False
    can_view_private_updates: bool = False
    can_assign: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def require(self, capability: str) -> None:
        if not getattr(self, capability, False):
            raise PermissionDeniedError(f"Your role does not allow this action ({capability})")


ANONYMOUS = Capabilities()


def is_privileged(role: str | None, privileged_roles: frozenset[str] | None = None) -> bool:
    roles = privileged_roles if privileged_roles is not None else get_settings().privileged_roles
    return bool(role) and role.lower() in roles


def capabilities_for(profile: Profile | None, privileged_roles: frozenset[str] | None = None) -> Capabilities:
    if profile is None:
        return ANONYMOUS

    privileged = is_privileged(profile.role, privileged_roles)
    return Capabilities(
        user_id=profile.user_id,
        role=profile.role,
        can_update_issues=privileged,
        can_post_updates=privileged,
        can_view_private_updates=privileged,
        can_assign=privileged,
    )
