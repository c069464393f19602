"""
Revision notifications.

post.revised is raised by whichever process ran the detection, usually a
job worker. `RevisionPublisher` forwards it from that process's event bus
onto the shared `post_revised` channel; API processes subscribe to the
channel and stream matching events to live viewers.
"""

from __future__ import annotations

import json
import logging
from typing import AsyncIterator

from babelpost.core.events import POST_REVISED, Event
from babelpost.services.base import Service
from babelpost.storage.base import ChannelStorage, ChannelSubscription, Channels

logger = logging.getLogger(__name__)


class RevisionPublisher(Service):
    
    service_id = "publish_revisions"
    subscribes_to = [POST_REVISED]
    
    def __init__(self, channels: ChannelStorage):
        self.channels = channels
    
    async def handle(self, event: Event) -> list[Event]:
        receivers = await self.channels.publish(Channels.POST_REVISED, event.to_dict())
        logger.debug(f"post.revised for {event.post_id} reached {receivers} subscribers")
        return []


async def revision_events(
    subscription: ChannelSubscription,
    post_id: str | None = None,
) -> AsyncIterator[Event]:
    """
    Yield revision events from an open subscription, optionally for one
    post only. Closes the subscription when the consumer stops.
    """
    try:
        async for message in subscription:
            event = Event.from_dict(message)
            if post_id is None or event.post_id == post_id:
                yield event
    finally:
        await subscription.close()


def format_sse(event: Event) -> str:
    """One server-sent-events frame."""
    return f"event: {event.event_type}\nid: {event.id}\ndata: {json.dumps(event.to_dict())}\n\n"
