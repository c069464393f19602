"""
Tests for the post lifecycle listeners.
"""

from babelpost.core.events import POST_EDITED, POST_PROCESSED, POST_REVISED
from babelpost.storage.base import Queues


class TestClearOnEdit:
    async def test_edit_clears_detection_and_translations(self, components, member):
        post = await components.posts.create("Bonjour tout le monde", user_id="user_1")
        await components.worker().drain()
        await components.translation_handler.translate(post.id, member)
        
        await components.posts.edit(post.id, "Salut à tous", user_id="user_1")
        
        assert await components.state_store.get(post.id) is None

    async def test_unchanged_body_keeps_state(self, components):
        post = await components.posts.create("Bonjour tout le monde")
        await components.worker().drain()
        
        await components.posts.edit(post.id, "Bonjour tout le monde")
        
        state = await components.state_store.get(post.id)
        assert state.detected_language == "fr"
        edited = components.event_bus.get_history(POST_EDITED, post.id)
        assert edited[-1].payload["raw_changed"] is False

    async def test_disabled_feature_keeps_state(self, components):
        post = await components.posts.create("Bonjour tout le monde")
        await components.worker().drain()
        await components.settings_store.update(translator_enabled=False)
        
        await components.posts.edit(post.id, "Salut à tous")
        
        raw_state = await components.state_store.get(post.id)
        assert raw_state is not None
        # The version stamp still keeps it from being served for the new body
        edited = await components.posts.get(post.id)
        assert await components.state_store.get(post.id, version=edited.version) is None

    async def test_edit_redetects_new_body(self, components, fake_provider_cls):
        post = await components.posts.create("Bonjour tout le monde")
        await components.worker().drain()
        
        fake_provider_cls.detect_result = "de"
        edited = await components.posts.edit(post.id, "Guten Tag allerseits")
        await components.worker().drain()
        
        state = await components.state_store.get(post.id, version=edited.version)
        assert state.detected_language == "de"
        assert len(components.event_bus.get_history(POST_REVISED, post.id)) == 2


class TestDetectOnProcess:
    async def test_create_enqueues_detection(self, components):
        await components.posts.create("Bonjour tout le monde")
        
        assert await components.storage.queue.size(Queues.DETECT_TRANSLATION) == 1

    async def test_edit_enqueues_even_within_dedupe_window(self, components):
        post = await components.posts.create("Bonjour tout le monde")
        await components.posts.edit(post.id, "Salut à tous")
        
        assert await components.storage.queue.size(Queues.DETECT_TRANSLATION) == 2
        assert len(components.event_bus.get_history(POST_PROCESSED, post.id)) == 2

    async def test_disabled_feature_enqueues_nothing(self, components):
        await components.settings_store.update(translator_enabled=False)
        
        await components.posts.create("Bonjour tout le monde")
        
        assert await components.storage.queue.size(Queues.DETECT_TRANSLATION) == 0


class TestClearAll:
    async def test_clear_all_forgets_every_post(self, components):
        for text in ("Bonjour", "Salut", "Coucou"):
            await components.posts.create(text)
        await components.worker().drain()
        
        removed = await components.state_store.clear_all()
        
        assert removed == 3
