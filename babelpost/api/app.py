"""
FastAPI application.

Exposes the translate action and a minimal post API that renders the
`can_translate` attribute next to each post. The post endpoints stand in
for the host platform's own post routes.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from babelpost.auth import get_viewer
from babelpost.config import get_settings
from babelpost.config_loader import load_site_settings
from babelpost.core.errors import RateLimited, TranslatorError
from babelpost.core.models import CanTranslate, Post, TranslationResult, Viewer
from babelpost.integrations.sentry import init_sentry
from babelpost.providers.registry import get_provider
from babelpost.services.notifications import format_sse, revision_events
from babelpost.storage.base import Channels, Queues
from babelpost.wiring import Components, build_components

logger = logging.getLogger(__name__)


# =============================================================================
# App State
# =============================================================================


class AppState:
    """Application state - initialized at startup."""
    
    components: Components | None = None
    worker_task: asyncio.Task | None = None


state = AppState()


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup app resources."""
    settings = get_settings()
    
    if init_sentry():
        logger.info("Sentry error tracking enabled")
    
    # Tests install their own components before startup
    if state.components is None:
        state.components = build_components(settings)
    components = state.components
    
    if settings.site_settings_file:
        await load_site_settings(settings.site_settings_file, components.settings_store)
    
    # Without a shared store there are no separate workers, so consume
    # detection jobs in-process
    if not settings.use_redis and state.worker_task is None:
        worker = components.worker()
        state.worker_task = asyncio.create_task(worker.run_forever())
    
    logger.info(f"Translator API starting in {settings.environment} mode")
    
    yield
    
    if state.worker_task is not None:
        state.worker_task.cancel()
        with suppress(asyncio.CancelledError):
            await state.worker_task
        state.worker_task = None
    logger.info("Translator API shutting down")


# =============================================================================
# App Setup
# =============================================================================


app = FastAPI(
    title="Babelpost API",
    description="Language detection and on-demand translation of posts",
    version="0.3.0",
    lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TranslatorError)
async def translator_error_handler(request: Request, exc: TranslatorError) -> JSONResponse:
    headers = {}
    if isinstance(exc, RateLimited):
        headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(
        status_code=exc.status_code,
        content={"errors": [exc.message], "error_type": exc.error_type},
        headers=headers,
    )


# =============================================================================
# Dependencies
# =============================================================================


def get_components() -> Components:
    if state.components is None:
        raise HTTPException(status_code=503, detail="Service is starting")
    return state.components


# =============================================================================
# Request/Response Models
# =============================================================================


class TranslateRequest(BaseModel):
    post_id: str


class CreatePostRequest(BaseModel):
    raw: str = Field(min_length=1)
    category_id: int | None = None
    manually_translated: bool = False


class EditPostRequest(BaseModel):
    raw: str = Field(min_length=1)


class PostResponse(BaseModel):
    id: str
    raw: str
    cooked: str
    category_id: int | None
    version: int
    can_translate: CanTranslate
    detected_lang: str | None = None


async def serialize_post(post: Post, viewer: Viewer, components: Components) -> PostResponse:
    config = await components.settings_store.snapshot()
    translation_state = await components.state_store.get(post.id, version=post.version)
    can_translate = await components.visibility.evaluate(post, viewer, config, translation_state)
    return PostResponse(
        id=post.id,
        raw=post.raw,
        cooked=post.cooked,
        category_id=post.category_id,
        version=post.version,
        can_translate=can_translate,
        detected_lang=translation_state.detected_language if translation_state else None,
    )


# =============================================================================
# Health
# =============================================================================


@app.get("/health")
async def health() -> dict[str, Any]:
    result: dict[str, Any] = {"status": "ok"}
    if state.components is not None:
        result["detection_queue"] = await state.components.storage.queue.size(Queues.DETECT_TRANSLATION)
    return result


# =============================================================================
# Translator
# =============================================================================


@app.post("/translator/translate", response_model=TranslationResult)
async def translate_post(
    request: TranslateRequest,
    viewer: Viewer = Depends(get_viewer),
    components: Components = Depends(get_components),
):
    """Translate a post into the viewer's locale."""
    return await components.translation_handler.translate(request.post_id, viewer)


@app.get("/translator/languages")
async def list_languages(components: Components = Depends(get_components)):
    """Locales the active provider can translate into."""
    config = await components.settings_store.snapshot()
    provider = get_provider(config, components.registry)
    return {
        "provider": provider.name,
        "locales": [
            {"locale": locale, "code": provider.language_for_locale(locale)}
            for locale in provider.supported_locales()
        ],
    }


# =============================================================================
# Posts
# =============================================================================


@app.post("/posts", response_model=PostResponse)
async def create_post(
    request: CreatePostRequest,
    viewer: Viewer = Depends(get_viewer),
    components: Components = Depends(get_components),
):
    if not viewer.is_authenticated:
        raise HTTPException(status_code=403, detail="You need to be logged in")
    
    post = await components.posts.create(
        request.raw,
        user_id=viewer.user_id,
        category_id=request.category_id,
        manually_translated=request.manually_translated,
    )
    return await serialize_post(post, viewer, components)


@app.get("/posts/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    viewer: Viewer = Depends(get_viewer),
    components: Components = Depends(get_components),
):
    post = await components.posts.get(post_id)
    if post is None or not post.is_visible_to(viewer.user_id, viewer.is_staff):
        raise HTTPException(status_code=404, detail="Post not found")
    return await serialize_post(post, viewer, components)


@app.put("/posts/{post_id}", response_model=PostResponse)
async def edit_post(
    post_id: str,
    request: EditPostRequest,
    viewer: Viewer = Depends(get_viewer),
    components: Components = Depends(get_components),
):
    if not viewer.is_authenticated:
        raise HTTPException(status_code=403, detail="You need to be logged in")
    
    post = await components.posts.edit(post_id, request.raw, user_id=viewer.user_id)
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return await serialize_post(post, viewer, components)


@app.get("/posts/{post_id}/revisions")
async def stream_revisions(
    post_id: str,
    viewer: Viewer = Depends(get_viewer),
    components: Components = Depends(get_components),
):
    """
    Server-sent events for a post's detection revisions.

    Revisions are usually produced by a separate worker process, so they
    arrive through the shared revision channel, not this process's bus.
    """
    post = await components.posts.get(post_id)
    if post is None or not post.is_visible_to(viewer.user_id, viewer.is_staff):
        raise HTTPException(status_code=404, detail="Post not found")
    
    subscription = await components.storage.channels.subscribe(Channels.POST_REVISED)
    
    async def stream():
        events = revision_events(subscription, post_id)
        try:
            async for event in events:
                yield format_sse(event)
        finally:
            # Closes the subscription when the client goes away
            await events.aclose()
    
    return StreamingResponse(stream(), media_type="text/event-stream")
