"""Explicit event subscriptions for Survey Recorder.

Recorder and participant events are delivered through
:class:`EventEmitter`. Listeners receive a :class:`Subscription` handle from
:meth:`EventEmitter.subscribe` and hand it back to
:meth:`EventEmitter.cancel` when they unmount.
"""

import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from loguru import logger

Handler = Callable[..., None]

_subscription_ids = itertools.count(1)


@dataclass(frozen=True)
class Subscription:
    """Handle for one registered event handler."""

    event: str
    handler: Handler = field(compare=False)
    id: int = field(default_factory=lambda: next(_subscription_ids))


class EventEmitter:
    """Synchronous event dispatch in registration order."""

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[Subscription]] = {}

    def subscribe(self, event: str, handler: Handler) -> Subscription:
        """Register ``handler`` for ``event``.

        Args:
            event: Event name, e.g. ``'recordingUpdate'``
            handler: Callable invoked with the emitted arguments

        Returns:
            Handle to pass to :meth:`cancel`
        """
        subscription = Subscription(event=event, handler=handler)
        self._subscriptions.setdefault(event, []).append(subscription)
        return subscription

    def cancel(self, subscription: Subscription) -> None:
        """Remove a subscription; cancelling twice is a no-op."""
        handlers = self._subscriptions.get(subscription.event, [])
        if subscription in handlers:
            handlers.remove(subscription)

    def listener_count(self, event: str) -> int:
        return len(self._subscriptions.get(event, []))

    def emit(self, event: str, *args: Any) -> None:
        """Invoke every handler registered for ``event``.

        A handler that raises is logged and does not keep the remaining
        handlers from running.
        """
        # Handlers may cancel themselves while we iterate
        handlers = list(self._subscriptions.get(event, []))
        logger.debug(f"Emitting {event}{args} to {len(handlers)} handler(s)")
        for subscription in handlers:
            try:
                subscription.handler(*args)
            except Exception:
                logger.exception(f"Handler for {event} failed")
