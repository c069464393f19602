"""
Base class for event-driven services.

Services subscribe to post lifecycle events and may emit new events in
response.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from babelpost.core.events import Event, EventBus


class Service(ABC):
    """
    Base class for all services.
    
    Example:
        class ClearOnEdit(Service):
            service_id = "clear_on_edit"
            subscribes_to = ["post.edited"]
            
            async def handle(self, event: Event) -> list[Event]:
                ...
                return []
    """
    
    @property
    @abstractmethod
    def service_id(self) -> str:
        """Unique identifier for this service."""
        pass
    
    @property
    @abstractmethod
    def subscribes_to(self) -> list[str]:
        """Event patterns this service handles (wildcards allowed)."""
        pass
    
    @abstractmethod
    async def handle(self, event: Event) -> list[Event]:
        """Handle an event and return any resulting events."""
        pass
    
    def wire(self, bus: EventBus) -> None:
        """Subscribe this service to every pattern it handles."""
        for pattern in self.subscribes_to:
            bus.subscribe(pattern, self.handle)
    
    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.service_id})>"
