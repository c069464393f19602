"""
Event system.

Post lifecycle hooks from the host platform arrive here as events, and
translation state changes leave as events so live viewers can refresh.
"""

from __future__ import annotations

import fnmatch
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

# Type for event handlers
EventHandler = Callable[["Event"], Awaitable[list["Event"]]]


# Event types
POST_CREATED = "post.created"
POST_EDITED = "post.edited"
POST_PROCESSED = "post.processed"  # Body has been cooked
POST_REVISED = "post.revised"  # Translation state changed, clients should refresh


@dataclass
class Event:
    """
    An event in the system.
    
    Events are immutable records of something that happened to a post.
    """
    
    event_type: str  # e.g., "post.edited", "post.revised"
    post_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    
    # Who caused it, if anyone
    user_id: str | None = None
    
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    
    def to_dict(self) -> dict[str, Any]:
        """Serialize for the cross-process revision channel."""
        return {
            "id": self.id,
            "event_type": self.event_type,
            "post_id": self.post_id,
            "user_id": self.user_id,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }
    
    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        """Deserialize event from dictionary."""
        return cls(
            id=data["id"],
            event_type=data["event_type"],
            post_id=data["post_id"],
            user_id=data.get("user_id"),
            payload=data.get("payload", {}),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass
class Subscription:
    """A subscription to events matching a pattern."""
    
    pattern: str  # e.g., "post.*" or "post.edited"
    handler: EventHandler
    
    def matches(self, event: Event) -> bool:
        return fnmatch.fnmatch(event.event_type, self.pattern)


class EventBus:
    """
    In-memory event bus implementation.
    
    Suitable for a single process. Cross-process work goes through the
    queue storage instead; this bus only fans out within one worker.
    """
    
    def __init__(self, max_history: int = 1000):
        self._subscriptions: list[Subscription] = []
        self._event_history: list[Event] = []
        self._max_history = max_history
    
    def subscribe(self, pattern: str, handler: EventHandler) -> Subscription:
        """
        Subscribe to events matching a pattern.
        
        Args:
            pattern: Event type pattern (supports wildcards like "post.*")
            handler: Async function to handle matching events
        """
        subscription = Subscription(pattern=pattern, handler=handler)
        self._subscriptions.append(subscription)
        return subscription
    
    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription."""
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
    
    async def publish(self, event: Event) -> list[Event]:
        """
        Publish an event and return any events produced by handlers.
        
        Handlers can return new events, which are then also published.
        """
        self._event_history.append(event)
        if len(self._event_history) > self._max_history:
            self._event_history = self._event_history[-self._max_history:]
        
        matching = [s for s in self._subscriptions if s.matches(event)]
        
        all_resulting_events: list[Event] = []
        
        for subscription in matching:
            try:
                resulting_events = await subscription.handler(event)
                all_resulting_events.extend(resulting_events)
            except Exception:
                # One broken handler must not stop the others
                logger.exception(f"Error in event handler for {event.event_type}")
        
        for resulting_event in list(all_resulting_events):
            cascade_events = await self.publish(resulting_event)
            all_resulting_events.extend(cascade_events)
        
        return all_resulting_events
    
    def get_history(
        self,
        event_type: str | None = None,
        post_id: str | None = None,
        limit: int = 100,
    ) -> list[Event]:
        """Query event history with optional filters."""
        results = self._event_history
        
        if event_type:
            results = [e for e in results if fnmatch.fnmatch(e.event_type, event_type)]
        
        if post_id:
            results = [e for e in results if e.post_id == post_id]
        
        return results[-limit:]


# Singleton event bus for the application
_default_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the default event bus instance."""
    global _default_bus
    if _default_bus is None:
        _default_bus = EventBus()
    return _default_bus


def reset_event_bus() -> None:
    """Reset the default event bus (useful for testing)."""
    global _default_bus
    _default_bus = None


# Convenience constructors
def post_created(post_id: str, user_id: str | None = None) -> Event:
    return Event(event_type=POST_CREATED, post_id=post_id, user_id=user_id)


def post_edited(post_id: str, raw_changed: bool, user_id: str | None = None) -> Event:
    return Event(
        event_type=POST_EDITED,
        post_id=post_id,
        user_id=user_id,
        payload={"raw_changed": raw_changed},
    )


def post_processed(post_id: str) -> Event:
    return Event(event_type=POST_PROCESSED, post_id=post_id)


def post_revised(post_id: str, **extra_payload: Any) -> Event:
    """The 'state changed' notification for live viewers."""
    return Event(event_type=POST_REVISED, post_id=post_id, payload=extra_payload)
