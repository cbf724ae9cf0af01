"""
AutomationManager: owns the set of automations and their lifecycle.

The manager owns automations, not behavior. Each automation decides what
its rules do; the manager only builds, starts and stops them.
"""

from typing import TYPE_CHECKING, Dict, List, Optional
import logging

from home_automation.errors import ConfigurationError

if TYPE_CHECKING:
    from home_automation.config import AutomationConfig
    from home_automation.core.registry import EntityRegistry
    from home_automation.core.scheduler import Scheduler
    from home_automation.modules.base import Automation

logger = logging.getLogger(__name__)


class AutomationManager:
    """
    Manages every automation of a deployment.

    Responsibilities:
    - Keep automations by ID (unique)
    - Start them all (fail fast on the first error)
    - Stop them all (best effort, every automation gets stopped)
    """

    def __init__(self) -> None:
        """Initialize an empty manager."""
        self._automations: Dict[str, "Automation"] = {}

    @classmethod
    def from_config(
        cls,
        config: "AutomationConfig",
        registry: "EntityRegistry",
        scheduler: "Scheduler",
    ) -> "AutomationManager":
        """
        Build every automation described by a configuration.

        Args:
            config: Deployment configuration
            registry: Registry holding the referenced entities
            scheduler: Timer service shared by all automations

        Returns:
            Manager with all automations added (not started)

        Raises:
            ConfigurationError: If any automation references a missing entity
        """
        from home_automation.core.identity import IdentityRegistry
        from home_automation.modules.fans import build_fan_automation
        from home_automation.modules.lighting import build_motion_light

        identities = IdentityRegistry(config.identities)
        manager = cls()
        for light_config in config.lights:
            manager.add(build_motion_light(light_config, registry, scheduler, identities))
        for fan_config in config.fans:
            manager.add(build_fan_automation(fan_config, registry, scheduler, identities))

        logger.info(f"Built {len(manager._automations)} automations from config")
        return manager

    def add(self, automation: "Automation") -> "Automation":
        """
        Register an automation.

        Raises:
            ConfigurationError: If the ID is already used
        """
        if automation.id in self._automations:
            raise ConfigurationError(f"Automation with id '{automation.id}' already exists")
        self._automations[automation.id] = automation
        logger.debug(f"Added automation: {automation.id}")
        return automation

    def get(self, automation_id: str) -> Optional["Automation"]:
        """
        Get an automation by ID.

        Args:
            automation_id: The automation ID

        Returns:
            The automation or None if not found
        """
        return self._automations.get(automation_id)

    def all_automations(self) -> List["Automation"]:
        return list(self._automations.values())

    def start_all(self) -> None:
        """
        Start every automation in insertion order.

        Raises:
            Exception: The first error raised by an automation's start()
        """
        for automation in self._automations.values():
            try:
                automation.start()
            except Exception as e:
                logger.error(f"Failed to start automation {automation.id}: {e}", exc_info=True)
                raise
        logger.info(f"Started {len(self._automations)} automations")

    def stop_all(self) -> None:
        """Stop every automation, logging (not raising) individual failures."""
        for automation in reversed(list(self._automations.values())):
            try:
                automation.stop()
            except Exception as e:
                logger.error(f"Failed to stop automation {automation.id}: {e}", exc_info=True)
        logger.info(f"Stopped {len(self._automations)} automations")
