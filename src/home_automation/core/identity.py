"""
Actor classification for state changes.

Tells apart changes made by hand (wall switch, app user) from changes made
by automations, so rules can react only to manual operation.
"""

from typing import Optional

from home_automation.config import IdentityConfig


class IdentityRegistry:
    """Classifies StateChange.actor_id values using an IdentityConfig."""

    def __init__(self, config: Optional[IdentityConfig] = None) -> None:
        self.config = config or IdentityConfig()

    def name_of(self, actor_id: Optional[str]) -> str:
        """
        Get a display name for an actor.

        Returns:
            Configured name, "Physical" for no actor, or "Unknown (<id>)"
        """
        if not actor_id:
            return "Physical"
        return self.config.names.get(actor_id, f"Unknown ({actor_id})")

    def is_physically_operated(self, actor_id: Optional[str]) -> bool:
        """True if nobody in the platform caused the change (wall switch, sensor)."""
        return not actor_id

    def is_manually_operated(self, actor_id: Optional[str]) -> bool:
        """True for physical operation or a configured manual user."""
        return self.is_physically_operated(actor_id) or actor_id in self.config.manual_users

    def is_automated(self, actor_id: Optional[str]) -> bool:
        return bool(actor_id) and actor_id in self.config.automated_users
