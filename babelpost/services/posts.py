"""
Post access.

Posts belong to the host platform. This thin store reads them from the
shared metadata store and, for the bundled API, creates and edits them
so the post lifecycle events fire the way the host would fire them.
"""

from __future__ import annotations

import html
import logging

from babelpost.core.events import EventBus, post_created, post_edited, post_processed
from babelpost.core.models import Post
from babelpost.core.utils import utc_now
from babelpost.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)


def cook(raw: str) -> str:
    """Render raw post text to HTML: escaped paragraphs split on blank lines."""
    paragraphs = [p.strip() for p in raw.replace("\r\n", "\n").split("\n\n")]
    return "".join(
        f"<p>{html.escape(p).replace(chr(10), '<br>')}</p>"
        for p in paragraphs if p
    )


class PostStore:
    """Load, create and edit posts."""
    
    def __init__(self, metadata: MetadataStorage, event_bus: EventBus | None = None):
        self.metadata = metadata
        self.event_bus = event_bus
    
    async def get(self, post_id: str) -> Post | None:
        data = await self.metadata.get(Collections.POSTS, post_id)
        if data is None:
            return None
        return Post.model_validate(data)
    
    async def save(self, post: Post) -> None:
        await self.metadata.save(Collections.POSTS, post.id, post.model_dump(mode="json"))
    
    async def create(self, raw: str, user_id: str | None = None, **fields) -> Post:
        post = Post(raw=raw, cooked=cook(raw), **fields)
        await self.save(post)
        
        if self.event_bus:
            await self.event_bus.publish(post_created(post.id, user_id=user_id))
            await self.event_bus.publish(post_processed(post.id))
        return post
    
    async def edit(self, post_id: str, raw: str, user_id: str | None = None) -> Post | None:
        """
        Replace a post's body.
        
        Publishes post.edited (with whether the raw text actually changed)
        followed by post.processed once the new body is cooked.
        """
        post = await self.get(post_id)
        if post is None:
            return None
        
        raw_changed = raw != post.raw
        if raw_changed:
            post.raw = raw
            post.cooked = cook(raw)
            post.version += 1
            post.updated_at = utc_now()
            await self.save(post)
            logger.debug(f"Post {post_id} edited, now version {post.version}")
        
        if self.event_bus:
            await self.event_bus.publish(post_edited(post_id, raw_changed=raw_changed, user_id=user_id))
            if raw_changed:
                await self.event_bus.publish(post_processed(post_id))
        return post
