"""
Platform adapter interface for actuator commands.

The adapter provides an abstraction layer between the automation core and
the host platform (Home Assistant, etc.). The integration layer provides
a concrete implementation.

Design Principle:
    The adapter is intentionally minimal. The core never reads device state
    through the adapter; the host pushes state into the EntityRegistry and
    the core only sends commands out through call_service().

    Commands are fire-and-forget. The core does not retry and does not wait
    for the device to confirm.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from home_automation.core import states
from home_automation.errors import TransientActuatorError

if TYPE_CHECKING:
    from home_automation.core.registry import EntityRegistry

ServiceCall = Tuple[str, str, Optional[str], Optional[Dict[str, Any]]]


class PlatformAdapter(ABC):
    """
    Abstract interface for platform operations.

    The host platform provides a concrete implementation that translates
    these calls to platform-specific operations.
    """

    @abstractmethod
    def call_service(
        self,
        domain: str,
        service: str,
        entity_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Execute a platform service call.

        Args:
            domain: Service domain (e.g., "light", "switch", "number")
            service: Service name (e.g., "turn_on", "set_value", "press")
            entity_id: Target entity
            data: Additional service data (e.g., {"brightness_pct": 80})

        Returns:
            True if the call was dispatched, False otherwise

        Raises:
            TransientActuatorError: If the platform rejected the command
        """
        pass


class MockPlatformAdapter(PlatformAdapter):
    """
    Mock adapter for testing.

    Tracks service calls, can simulate failures, and can echo on/off commands
    back into the registry as state changes (like a real device would).

    For testing a device that confirms commands:
        adapter = MockPlatformAdapter(echo_state=True)
        registry = EntityRegistry(bus, adapter)
        adapter.attach_registry(registry)
    """

    ECHO_ACTOR = "automation"

    def __init__(self, echo_state: bool = False) -> None:
        self._service_calls: List[ServiceCall] = []
        self._failures: List[str] = []
        self._registry: Optional["EntityRegistry"] = None
        self.echo_state = echo_state

    def attach_registry(self, registry: "EntityRegistry") -> None:
        """Set the registry used for echoing state."""
        self._registry = registry

    def fail_next(self, entity_id: str) -> None:
        """Make the next command for entity_id raise TransientActuatorError."""
        self._failures.append(entity_id)

    def get_service_calls(self, entity_id: Optional[str] = None) -> List[ServiceCall]:
        """Get recorded service calls, optionally for one entity."""
        if entity_id is None:
            return self._service_calls.copy()
        return [c for c in self._service_calls if c[2] == entity_id]

    def clear_service_calls(self) -> None:
        """Clear recorded service calls."""
        self._service_calls.clear()

    # PlatformAdapter implementation

    def call_service(
        self,
        domain: str,
        service: str,
        entity_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        if entity_id is not None and entity_id in self._failures:
            self._failures.remove(entity_id)
            raise TransientActuatorError(entity_id, f"{domain}.{service}", "simulated failure")

        self._service_calls.append((domain, service, entity_id, data))

        if self.echo_state and self._registry and entity_id:
            self._echo(service, entity_id, data)
        return True

    def _echo(self, service: str, entity_id: str, data: Optional[Dict[str, Any]]) -> None:
        entity = self._registry.get(entity_id)
        if entity is None:
            return

        if service == "turn_on":
            new_state = states.ON
        elif service == "turn_off":
            new_state = states.OFF
        elif service == "toggle":
            new_state = states.OFF if entity.is_on() else states.ON
        elif service == "set_value" and data:
            new_state = str(data.get("value"))
        else:
            return

        self._registry.update_state(
            entity_id, new_state, attributes=data, actor_id=self.ECHO_ACTOR
        )
