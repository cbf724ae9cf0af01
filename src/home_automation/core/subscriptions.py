"""
Subscription handles and the SubscriptionSet container.

A Subscription is one live registration (bus handler, hold timer, ...).
A SubscriptionSet owns a group of them so a whole rule group can be
released in one step.
"""

import logging
from typing import Callable, Iterable, List, Optional

logger = logging.getLogger(__name__)


class Subscription:
    """
    Handle to one live registration.

    Disposing releases the registration exactly once; further calls are no-ops.
    """

    def __init__(
        self,
        release: Optional[Callable[[], None]] = None,
        name: str = "",
    ) -> None:
        """
        Initialize a subscription.

        Args:
            release: Callback that tears down the underlying registration
            name: Label used in debug logs
        """
        self._release = release
        self._active = True
        self.name = name

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> None:
        """Release the registration (idempotent)."""
        if not self._active:
            return
        self._active = False
        release, self._release = self._release, None
        if release is not None:
            release()

    def __repr__(self) -> str:
        status = "active" if self._active else "disposed"
        return f"Subscription({self.name!r}, {status})"


class SubscriptionSet:
    """
    Composite owner of subscriptions.

    Adding a subscription transfers ownership to the set. Disposing the set
    releases every member once; adding to a disposed set releases the new
    member immediately.
    """

    def __init__(self, subscriptions: Optional[Iterable[Subscription]] = None) -> None:
        self._subscriptions: List[Subscription] = []
        self._disposed = False
        if subscriptions is not None:
            self.add_all(subscriptions)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def add(self, subscription: Subscription) -> None:
        """Take ownership of a subscription."""
        if self._disposed:
            logger.debug(f"Set already disposed, releasing {subscription.name or 'subscription'}")
            subscription.dispose()
            return
        self._subscriptions.append(subscription)

    def add_all(self, subscriptions: Iterable[Subscription]) -> None:
        for subscription in subscriptions:
            self.add(subscription)

    def dispose(self) -> None:
        """Release all owned subscriptions (idempotent)."""
        if self._disposed:
            return
        self._disposed = True
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.dispose()

    def __len__(self) -> int:
        return sum(1 for s in self._subscriptions if s.active)

    def __iter__(self):
        return iter(list(self._subscriptions))
