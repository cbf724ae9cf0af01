"""
Exception hierarchy for home-automation.

Configuration problems fail fast at construction time. Actuator failures are
logged by the entity layer and never escape into the dispatcher.
"""


class AutomationError(Exception):
    """Base class for all home-automation errors."""


class ConfigurationError(AutomationError, ValueError):
    """
    A required device reference or parameter is missing or invalid.

    Raised synchronously while building automations and never retried.
    """


class TransientActuatorError(AutomationError):
    """
    An actuator command failed at the platform boundary.

    Platform adapters raise this; Entity command helpers catch and log it.
    """

    def __init__(self, entity_id: str, service: str, message: str = "") -> None:
        self.entity_id = entity_id
        self.service = service
        detail = f": {message}" if message else ""
        super().__init__(f"{service} failed for {entity_id}{detail}")
