"""Team roles and permission checks."""

import logging

from .models import Profile, Role
from .store import StoreProtocol

logger = logging.getLogger(__name__)

_ROLE_ALIASES = {
    "admin": Role.ADMIN,
    "administrator": Role.ADMIN,
    "manager": Role.MANAGER,
    "stock_manager": Role.MANAGER,
}


class PermissionDeniedError(Exception):
    """Raised when a user lacks the role required for an operation."""

    def __init__(self, user_id: str | None, action: str):
        self.user_id = user_id
        self.action = action
        super().__init__(f"User '{user_id or 'anonymous'}' is not allowed to {action}")


def normalize_role(value: str | None) -> Role:
    """Map a stored or typed role name onto a Role; unknown names become viewer."""
    key = (value or "").strip().lower().replace("-", "_").replace(" ", "_")
    return _ROLE_ALIASES.get(key, Role.VIEWER)


class TeamManager:
    """Looks up team members and manages their roles."""

    def __init__(self, store: StoreProtocol):
        self.store = store

    def role_of(self, user_id: str | None) -> Role:
        """Role of a user; unknown users are viewers."""
        if not user_id:
            return Role.VIEWER
        profile = self.store.get_profile(user_id)
        return profile.role if profile else Role.VIEWER

    def is_admin(self, user_id: str | None) -> bool:
        return self.role_of(user_id) == Role.ADMIN

    def require_admin(self, user_id: str | None, action: str) -> None:
        """Raise PermissionDeniedError unless the user is an admin."""
        if not self.is_admin(user_id):
            raise PermissionDeniedError(user_id, action)

    def members(self) -> list[Profile]:
        return self.store.list_profiles()

    def set_role(
        self,
        acting_user: str | None,
        user_id: str,
        role: str | Role,
        full_name: str | None = None,
    ) -> Profile:
        """Assign a role to a team member, creating the profile if needed.

        The very first profile may be created by anyone so a fresh database
        can be bootstrapped with an admin.

        Args:
            acting_user: User performing the change
            user_id: Member whose role changes
            role: New role name (aliases accepted)
            full_name: Optional display name

        Returns:
            The stored profile

        Raises:
            PermissionDeniedError: If the acting user is not an admin
        """
        if self.store.list_profiles():
            self.require_admin(acting_user, "change team roles")

        new_role = role if isinstance(role, Role) else normalize_role(role)
        existing = self.store.get_profile(user_id)
        profile = Profile(
            id=user_id,
            full_name=full_name if full_name is not None else (existing.full_name if existing else None),
            role=new_role,
        )
        self.store.upsert_profile(profile)
        logger.info("Set role of %s to %s", user_id, new_role.value)
        return profile
