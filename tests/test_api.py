"""
Tests for the HTTP API.

The app runs in-process over httpx.ASGITransport, which skips the
lifespan, so no background worker starts; tests drain the queue
themselves.
"""

import asyncio
import json

import httpx
import pytest

from babelpost.api.app import app, lifespan, state as app_state, stream_revisions
from babelpost.core.events import post_revised
from babelpost.storage.base import Channels


MEMBER = {"Authorization": "Bearer user_1", "Accept-Language": "en"}
STAFF = {"Authorization": "Bearer staff_1", "Accept-Language": "en"}


@pytest.fixture
async def client(components):
    app_state.components = components
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app_state.components = None


async def create_post(client, raw="Bonjour tout le monde", **fields):
    response = await client.post("/posts", json={"raw": raw, **fields}, headers=MEMBER)
    assert response.status_code == 200
    return response.json()


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.json() == {"status": "ok", "detection_queue": 0}

    async def test_health_reports_queue_depth(self, client, components):
        await create_post(client)
        
        response = await client.get("/health")
        assert response.json()["detection_queue"] == 1

    async def test_not_ready_without_components(self):
        app_state.components = None
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/translator/translate", json={"post_id": "1"})
        assert response.status_code == 503


# =============================================================================
# Posts
# =============================================================================


class TestPosts:
    async def test_new_post_hides_button_until_detected(self, client, components):
        post = await create_post(client)
        
        assert post["can_translate"] == "hidden"
        assert post["detected_lang"] is None
        
        await components.worker().drain()
        
        response = await client.get(f"/posts/{post['id']}", headers=MEMBER)
        assert response.json()["can_translate"] == "show_button"
        assert response.json()["detected_lang"] == "fr"

    async def test_same_language_viewer(self, client, components):
        post = await create_post(client)
        await components.worker().drain()
        
        headers = {**MEMBER, "Accept-Language": "fr-FR,fr;q=0.9"}
        response = await client.get(f"/posts/{post['id']}", headers=headers)
        assert response.json()["can_translate"] == "hidden"

    async def test_guest_is_prompted_to_log_in(self, client, components):
        post = await create_post(client)
        await components.worker().drain()
        
        response = await client.get(f"/posts/{post['id']}")
        assert response.json()["can_translate"] == "show_button_prompt_login"

    async def test_edit_resets_detection(self, client, components):
        post = await create_post(client)
        await components.worker().drain()
        
        response = await client.put(f"/posts/{post['id']}", json={"raw": "Guten Tag"}, headers=MEMBER)
        
        body = response.json()
        assert body["version"] == 2
        assert body["detected_lang"] is None
        assert body["can_translate"] == "hidden"

    async def test_create_requires_login(self, client):
        response = await client.post("/posts", json={"raw": "Bonjour"})
        assert response.status_code == 403

    async def test_missing_post(self, client):
        response = await client.get("/posts/nope", headers=MEMBER)
        assert response.status_code == 404


# =============================================================================
# Translate
# =============================================================================


class TestTranslate:
    async def test_translate(self, client):
        post = await create_post(client)
        
        response = await client.post("/translator/translate", json={"post_id": post["id"]}, headers=MEMBER)
        
        assert response.status_code == 200
        body = response.json()
        assert body["detected_lang"] == "fr"
        assert body["translation"] == f"[fr->en] {post['cooked']}"

    async def test_viewer_locale_from_header(self, client):
        post = await create_post(client)
        headers = {**MEMBER, "Accept-Language": "de"}
        
        response = await client.post("/translator/translate", json={"post_id": post["id"]}, headers=headers)
        assert response.json()["translation"].startswith("[fr->de]")

    async def test_guest_gets_403(self, client):
        post = await create_post(client)
        
        response = await client.post("/translator/translate", json={"post_id": post["id"]})
        
        assert response.status_code == 403
        assert response.json()["error_type"] == "authentication_required"
        assert response.json()["errors"]

    async def test_rate_limited_with_retry_after(self, client):
        post = await create_post(client)
        for _ in range(3):
            response = await client.post("/translator/translate", json={"post_id": post["id"]}, headers=MEMBER)
            assert response.status_code == 200
        
        response = await client.post("/translator/translate", json={"post_id": post["id"]}, headers=MEMBER)
        
        assert response.status_code == 429
        assert response.json()["error_type"] == "rate_limited"
        assert 1 <= int(response.headers["Retry-After"]) <= 60

    async def test_staff_not_rate_limited(self, client):
        post = await create_post(client)
        
        for _ in range(5):
            response = await client.post("/translator/translate", json={"post_id": post["id"]}, headers=STAFF)
            assert response.status_code == 200

    async def test_not_found(self, client):
        response = await client.post("/translator/translate", json={"post_id": "nope"}, headers=MEMBER)
        
        assert response.status_code == 404
        assert response.json()["error_type"] == "not_found"

    async def test_disabled(self, client, components):
        post = await create_post(client)
        await components.settings_store.update(translator_enabled=False)
        
        response = await client.post("/translator/translate", json={"post_id": post["id"]}, headers=MEMBER)
        
        assert response.status_code == 404
        assert response.json()["error_type"] == "feature_disabled"

    async def test_provider_failure(self, client, fake_provider_cls):
        from babelpost.core.errors import ProviderQuotaExceeded
        
        post = await create_post(client)
        fake_provider_cls.error = ProviderQuotaExceeded("characters exhausted for subscription 1234")
        
        response = await client.post("/translator/translate", json={"post_id": post["id"]}, headers=MEMBER)
        
        assert response.status_code == 422
        assert response.json()["error_type"] == "provider_quota_exceeded"
        assert "1234" not in response.json()["errors"][0]


# =============================================================================
# Languages
# =============================================================================


class TestLanguages:
    async def test_lists_provider_locales(self, client):
        response = await client.get("/translator/languages")
        
        body = response.json()
        assert body["provider"] == "Fake"
        assert {"locale": "pt_BR", "code": "pt"} in body["locales"]

    async def test_unknown_provider(self, client, components):
        await components.settings_store.update(translator="Babelfish")
        
        response = await client.get("/translator/languages")
        
        assert response.status_code == 422
        assert response.json()["error_type"] == "unknown_provider"


# =============================================================================
# Revision stream
# =============================================================================


class TestRevisionStream:
    async def test_streams_revisions_for_the_post(self, components, member, make_post):
        post = await make_post()
        other = await make_post("Salut")
        
        response = await stream_revisions(post.id, viewer=member, components=components)
        assert response.media_type == "text/event-stream"
        
        channels = components.storage.channels
        await channels.publish(Channels.POST_REVISED, post_revised(other.id).to_dict())
        await channels.publish(Channels.POST_REVISED, post_revised(post.id, detected_language="fr").to_dict())
        
        frame = await asyncio.wait_for(response.body_iterator.__anext__(), timeout=5)
        await response.body_iterator.aclose()
        assert await channels.publish(Channels.POST_REVISED, post_revised(post.id).to_dict()) == 0
        
        lines = frame.splitlines()
        assert lines[0] == "event: post.revised"
        data = json.loads(lines[2].removeprefix("data: "))
        assert data["post_id"] == post.id
        assert data["payload"]["detected_language"] == "fr"

    async def test_missing_post(self, client):
        response = await client.get("/posts/nope/revisions", headers=MEMBER)
        assert response.status_code == 404


# =============================================================================
# Lifespan
# =============================================================================


class TestLifespan:
    async def test_shutdown_waits_for_in_process_worker(self, components):
        app_state.components = components
        try:
            async with lifespan(app):
                task = app_state.worker_task
                assert task is not None
                await asyncio.sleep(0)
            
            assert task.done()
            assert app_state.worker_task is None
        finally:
            app_state.components = None
