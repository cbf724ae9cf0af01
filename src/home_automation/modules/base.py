"""
Base class for home-automation modules.

An automation is a long-lived plug-in owned by the AutomationManager.
"""

from abc import ABC, abstractmethod


class Automation(ABC):
    """
    Base class for automations.

    An automation:
    - Registers its rules against entity change streams on start()
    - Issues actuator commands from rule callbacks
    - Releases every subscription and pending delayed action on stop()
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique identifier for this automation."""
        pass

    @property
    @abstractmethod
    def started(self) -> bool:
        """True between start() and stop()."""
        pass

    @abstractmethod
    def start(self) -> None:
        """
        Activate the automation.

        Must be idempotent: calling it on a started automation is a no-op.
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """
        Deactivate the automation.

        After it returns, no callback of this automation may run.
        """
        pass
