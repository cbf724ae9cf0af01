"""
EntityRegistry: owns every Entity for the lifetime of the process.

Entity IDs are built from an explicit table mapping entity classes to
platform domains, resolved at configuration time.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type, TypeVar

from home_automation.core.entity import (
    BinarySensorEntity,
    ButtonEntity,
    Entity,
    FanEntity,
    InputBooleanEntity,
    LightEntity,
    NumberEntity,
    SensorEntity,
    SwitchEntity,
)
from home_automation.core.states import StateChange
from home_automation.errors import ConfigurationError

if TYPE_CHECKING:
    from home_automation.core.adapter import PlatformAdapter
    from home_automation.core.bus import EventBus

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)

DOMAIN_BY_TYPE: Dict[Type[Entity], str] = {
    BinarySensorEntity: "binary_sensor",
    ButtonEntity: "button",
    FanEntity: "fan",
    InputBooleanEntity: "input_boolean",
    LightEntity: "light",
    NumberEntity: "number",
    SensorEntity: "sensor",
    SwitchEntity: "switch",
}

TYPE_BY_DOMAIN: Dict[str, Type[Entity]] = {v: k for k, v in DOMAIN_BY_TYPE.items()}


def domain_of(entity_type: Type[Entity]) -> str:
    """Get the platform domain for an entity class."""
    try:
        return DOMAIN_BY_TYPE[entity_type]
    except KeyError:
        raise ConfigurationError(f"No domain registered for {entity_type.__name__}") from None


class EntityRegistry:
    """
    Registry of all entities known to the automation core.

    Responsibilities:
    - Create entities with consistent IDs
    - Resolve entity references from configuration (fail fast if missing)
    - Accept state updates from the host and publish them as StateChanges
    """

    def __init__(self, bus: "EventBus", platform: "PlatformAdapter") -> None:
        self._bus = bus
        self._platform = platform
        self._entities: Dict[str, Entity] = {}

    def create(
        self,
        entity_type: Type[E],
        object_id: str,
        state: Optional[str] = None,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> E:
        """
        Create (or return the existing) entity "<domain>.<object_id>".

        Args:
            entity_type: Entity class (must be in DOMAIN_BY_TYPE)
            object_id: Object part of the entity ID (e.g., "kitchen")
            state: Initial state
            attributes: Initial attributes

        Returns:
            The entity

        Raises:
            ConfigurationError: If the ID is already registered with another type
        """
        entity_id = f"{domain_of(entity_type)}.{object_id}"
        existing = self._entities.get(entity_id)
        if existing is not None:
            if not isinstance(existing, entity_type):
                raise ConfigurationError(
                    f"Entity {entity_id} already registered as {type(existing).__name__}"
                )
            return existing

        entity = entity_type(entity_id, self._bus, self._platform, state, attributes)
        self._entities[entity_id] = entity
        logger.debug(f"Created entity {entity_id} ({entity_type.__name__})")
        return entity

    def create_from_id(self, entity_id: str, state: Optional[str] = None) -> Entity:
        """Create an entity from a full ID, picking the class by domain."""
        domain, _, object_id = entity_id.partition(".")
        if not object_id:
            raise ConfigurationError(f"Invalid entity ID: {entity_id!r}")
        entity_type = TYPE_BY_DOMAIN.get(domain)
        if entity_type is None:
            raise ConfigurationError(f"Unsupported domain {domain!r} for {entity_id}")
        return self.create(entity_type, object_id, state)

    def device_entity(self, entity_type: Type[E], device_name: str, suffix: str) -> E:
        """
        Create an entity belonging to a device.

        Example:
            registry.device_entity(NumberEntity, "kitchen_sensor", "still_target_delay")
            # -> number.kitchen_sensor_still_target_delay
        """
        return self.create(entity_type, f"{device_name}_{suffix}")

    def get(self, entity_id: str) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def require(self, entity_id: Optional[str], entity_type: Type[E] = Entity) -> E:
        """
        Resolve an entity reference from configuration.

        Raises:
            ConfigurationError: If the reference is empty, unknown, or of the wrong type
        """
        if not entity_id:
            raise ConfigurationError(f"Missing required {entity_type.__name__} reference")

        entity = self._entities.get(entity_id)
        if entity is None:
            raise ConfigurationError(f"Entity {entity_id} is not registered")
        if not isinstance(entity, entity_type):
            raise ConfigurationError(
                f"Entity {entity_id} is a {type(entity).__name__}, "
                f"expected {entity_type.__name__}"
            )
        return entity

    def all_entities(self) -> List[Entity]:
        return list(self._entities.values())

    def update_state(
        self,
        entity_id: str,
        state: Optional[str],
        attributes: Optional[Dict[str, Any]] = None,
        actor_id: Optional[str] = None,
    ) -> Optional[StateChange]:
        """
        Feed a state reported by the host platform.

        Args:
            entity_id: Entity that changed
            state: New state
            attributes: New attributes (None = unchanged)
            actor_id: User/integration responsible for the change

        Returns:
            The published StateChange, or None for unknown entities and
            reports that repeat the current state
        """
        entity = self._entities.get(entity_id)
        if entity is None:
            logger.warning(f"State update for unknown entity: {entity_id}")
            return None
        return entity.update_state(state, attributes=attributes, actor_id=actor_id)
