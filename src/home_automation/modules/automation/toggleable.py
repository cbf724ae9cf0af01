"""
ToggleableAutomation: a rule group gated by a master switch.

Rules come from producers, callables returning the Subscriptions they
registered. Persistent producers run once at start() and stay active until
stop(). Toggleable producers run each time the master switch turns on, and
their subscriptions are released together when it turns off.

Example:
    automation = ToggleableAutomation(
        "kitchen_lights",
        master_switch=kitchen_master,
        persistent_rules=[lambda: [reactivate_rule()]],
        toggleable_rules=[lambda: lights_follow_motion(motion, light)],
        on_enabled=[lambda: sync_light_to_motion(motion, light)],
    )
    automation.start()
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence

from home_automation.core import states
from home_automation.core.states import StateChange
from home_automation.core.subscriptions import Subscription, SubscriptionSet
from home_automation.errors import ConfigurationError
from home_automation.modules.base import Automation

if TYPE_CHECKING:
    from home_automation.core.entity import Entity

logger = logging.getLogger(__name__)

RuleProducer = Callable[[], Iterable[Subscription]]
Callback = Callable[[], None]


class AutomationState(Enum):
    """Lifecycle state of a toggleable rule group."""

    DISABLED = "disabled"
    ENABLED = "enabled"


class ToggleableAutomation(Automation):
    """
    Enable/disable lifecycle driven by a master switch.

    The master switch being "on" means ENABLED. Any other state (off,
    unavailable, unknown, never reported) means DISABLED. At most one
    toggleable SubscriptionSet exists at any time.
    """

    def __init__(
        self,
        automation_id: str,
        master_switch: Optional["Entity"] = None,
        *,
        persistent_rules: Sequence[RuleProducer] = (),
        toggleable_rules: Sequence[RuleProducer] = (),
        on_enabled: Sequence[Callback] = (),
        on_disabled: Sequence[Callback] = (),
        cleanup: Sequence[Callback] = (),
    ) -> None:
        """
        Initialize the automation.

        Args:
            automation_id: Unique identifier
            master_switch: Gate entity (required if there are toggleable rules)
            persistent_rules: Producers registered once at start()
            toggleable_rules: Producers registered on every enable
            on_enabled: Reconcile callbacks run after each enable
            on_disabled: Callbacks run after each disable (e.g., cancel timers)
            cleanup: Callbacks run by stop() (e.g., cancel timers)

        Raises:
            ConfigurationError: If toggleable rules are given without a master switch
        """
        if not automation_id:
            raise ConfigurationError("Automation id is required")
        if toggleable_rules and master_switch is None:
            raise ConfigurationError(
                f"Automation '{automation_id}' has toggleable rules but no master switch"
            )

        self._id = automation_id
        self.master_switch = master_switch
        self._persistent_rules: List[RuleProducer] = list(persistent_rules)
        self._toggleable_rules: List[RuleProducer] = list(toggleable_rules)
        self._on_enabled: List[Callback] = list(on_enabled)
        self._on_disabled: List[Callback] = list(on_disabled)
        self._cleanup: List[Callback] = list(cleanup)

        self._state = AutomationState.DISABLED
        self._persistent: Optional[SubscriptionSet] = None
        self._toggleable: Optional[SubscriptionSet] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def id(self) -> str:
        return self._id

    @property
    def state(self) -> AutomationState:
        return self._state

    @property
    def is_enabled(self) -> bool:
        return self._state is AutomationState.ENABLED

    @property
    def started(self) -> bool:
        return self._persistent is not None

    @property
    def toggleable_subscriptions(self) -> Optional[SubscriptionSet]:
        """The active toggleable set, or None while disabled."""
        return self._toggleable

    @property
    def toggleable_subscription_count(self) -> int:
        return len(self._toggleable) if self._toggleable is not None else 0

    @property
    def persistent_subscription_count(self) -> int:
        """Live persistent subscriptions (including the master switch watcher)."""
        return len(self._persistent) if self._persistent is not None else 0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """
        Register persistent rules and apply the master switch's current state.

        Idempotent. If a persistent producer raises, everything registered so
        far is released and the error propagates.
        """
        if self.started:
            logger.debug(f"Automation {self._id} already started")
            return

        persistent = SubscriptionSet()
        try:
            for producer in self._persistent_rules:
                persistent.add_all(producer())
            if self.master_switch is not None:
                persistent.add(self.master_switch.subscribe(self._on_master_changed))
        except Exception:
            persistent.dispose()
            raise

        self._persistent = persistent
        logger.info(f"Started automation {self._id}")

        if self.master_switch is not None:
            self.apply_master_state(self.master_switch.current_state())

    def stop(self) -> None:
        """
        Release every subscription and run cleanup callbacks.

        After this returns no rule of this automation runs, even for events
        queued before the call.
        """
        if not self.started:
            return

        toggleable, self._toggleable = self._toggleable, None
        if toggleable is not None:
            toggleable.dispose()
        self._state = AutomationState.DISABLED

        persistent, self._persistent = self._persistent, None
        persistent.dispose()

        self._run_callbacks(self._cleanup, "cleanup")
        logger.info(f"Stopped automation {self._id}")

    def apply_master_state(self, state: Optional[str]) -> None:
        """Move to ENABLED if state is "on", otherwise to DISABLED."""
        if states.is_on(state):
            self.enable()
        else:
            self.disable()

    def enable(self) -> None:
        """
        Register the toggleable rules and reconcile actuators.

        No-op if already enabled or not started.
        """
        if not self.started:
            logger.warning(f"Cannot enable automation {self._id}: not started")
            return
        if self._toggleable is not None:
            logger.debug(f"Automation {self._id} already enabled")
            return

        toggleable = SubscriptionSet()
        try:
            for producer in self._toggleable_rules:
                toggleable.add_all(producer())
        except Exception:
            toggleable.dispose()
            raise

        self._toggleable = toggleable
        self._state = AutomationState.ENABLED
        logger.info(f"Enabled automation {self._id} ({len(toggleable)} rules)")
        self._run_callbacks(self._on_enabled, "on_enabled")

    def disable(self) -> None:
        """Release the toggleable rules. No-op if already disabled."""
        toggleable, self._toggleable = self._toggleable, None
        if toggleable is None:
            return

        toggleable.dispose()
        self._state = AutomationState.DISABLED
        logger.info(f"Disabled automation {self._id}")
        self._run_callbacks(self._on_disabled, "on_disabled")

    # =========================================================================
    # Internal
    # =========================================================================

    def _on_master_changed(self, change: StateChange) -> None:
        logger.debug(f"Master switch {change.entity_id} for {self._id}: {change.current}")
        self.apply_master_state(change.current)

    def _run_callbacks(self, callbacks: List[Callback], kind: str) -> None:
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in {kind} callback of {self._id}: {e}", exc_info=True)

    def __repr__(self) -> str:
        return f"ToggleableAutomation({self._id!r}, {self._state.value})"
