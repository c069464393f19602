"""
Tests for translate-button visibility.
"""

import pytest

from babelpost.core.models import CanTranslate, Viewer
from babelpost.storage.base import Queues


async def detected(components, post, language="fr"):
    await components.state_store.set_detected_language(post.id, language, version=post.version)


class TestHiddenRules:
    async def test_disabled_feature_hides(self, components, make_post, member, config):
        post = await make_post()
        await detected(components, post)
        config = config.model_copy(update={"translator_enabled": False})
        
        result = await components.visibility.evaluate(post, member, config)
        assert result == CanTranslate.HIDDEN

    @pytest.mark.parametrize("locale", ["en", "ru", "en_GB"])
    async def test_manual_translation_covers_locale(self, components, make_post, config, locale):
        post = await make_post(manually_translated=True)
        await detected(components, post)
        
        viewer = Viewer(user_id="user_1", locale=locale)
        result = await components.visibility.evaluate(post, viewer, config)
        assert result == CanTranslate.HIDDEN

    async def test_manual_translation_other_locale_shows(self, components, make_post, config):
        post = await make_post(manually_translated=True)
        await detected(components, post)
        
        viewer = Viewer(user_id="user_1", locale="de")
        result = await components.visibility.evaluate(post, viewer, config)
        assert result == CanTranslate.SHOW_BUTTON

    async def test_skipped_category(self, components, make_post, member, config):
        post = await make_post(category_id=7)
        await detected(components, post)
        config = config.model_copy(update={"translator_skip_category_ids": "3,7"})
        
        result = await components.visibility.evaluate(post, member, config)
        assert result == CanTranslate.HIDDEN

    async def test_other_category_shows(self, components, make_post, member, config):
        post = await make_post(category_id=8)
        await detected(components, post)
        config = config.model_copy(update={"translator_skip_category_ids": "3,7"})
        
        result = await components.visibility.evaluate(post, member, config)
        assert result == CanTranslate.SHOW_BUTTON

    async def test_too_long(self, components, make_post, member, config):
        post = await make_post("x" * 500)
        await detected(components, post)
        config = config.model_copy(update={"translator_max_post_length": 100})
        
        result = await components.visibility.evaluate(post, member, config)
        assert result == CanTranslate.HIDDEN

    async def test_same_language_as_viewer(self, components, make_post, config):
        post = await make_post()
        await detected(components, post, "fr")
        
        viewer = Viewer(user_id="user_1", locale="fr")
        result = await components.visibility.evaluate(post, viewer, config)
        assert result == CanTranslate.HIDDEN

    async def test_regional_locale_matches_base_language(self, components, make_post, config):
        post = await make_post()
        await detected(components, post, "pt")
        
        viewer = Viewer(user_id="user_1", locale="pt_BR")
        result = await components.visibility.evaluate(post, viewer, config)
        assert result == CanTranslate.HIDDEN

    async def test_viewer_locale_unsupported_by_provider(self, components, make_post, config):
        post = await make_post()
        await detected(components, post, "fr")
        
        # The translate action would refuse this locale, so no button
        viewer = Viewer(user_id="user_1", locale="tlh")
        result = await components.visibility.evaluate(post, viewer, config)
        assert result == CanTranslate.HIDDEN

    async def test_unknown_provider_hides(self, components, make_post, member, config):
        post = await make_post()
        await detected(components, post)
        config = config.model_copy(update={"translator": "Babelfish"})
        
        result = await components.visibility.evaluate(post, member, config)
        assert result == CanTranslate.HIDDEN


class TestShowButton:
    async def test_foreign_post_shows_button(self, components, make_post, member, config):
        post = await make_post()
        await detected(components, post, "fr")
        
        result = await components.visibility.evaluate(post, member, config)
        assert result == CanTranslate.SHOW_BUTTON

    async def test_guest_prompted_to_log_in(self, components, make_post, guest, config):
        post = await make_post()
        await detected(components, post)
        
        result = await components.visibility.evaluate(post, guest, config)
        assert result == CanTranslate.SHOW_BUTTON_PROMPT_LOGIN

    async def test_guest_sees_button_when_guests_enabled(self, components, make_post, guest, config):
        post = await make_post()
        await detected(components, post)
        config = config.model_copy(update={"translator_enabled_for_guests": True})
        
        result = await components.visibility.evaluate(post, guest, config)
        assert result == CanTranslate.SHOW_BUTTON

    async def test_guest_prompt_precedes_detection(self, components, make_post, guest, config):
        post = await make_post()
        
        result = await components.visibility.evaluate(post, guest, config)
        
        assert result == CanTranslate.SHOW_BUTTON_PROMPT_LOGIN
        assert await components.storage.queue.size(Queues.DETECT_TRANSLATION) == 0


class TestUndetected:
    async def test_enqueues_detection_and_hides(
        self, components, make_post, member, config, fake_provider_cls
    ):
        post = await make_post()
        
        result = await components.visibility.evaluate(post, member, config)
        
        assert result == CanTranslate.HIDDEN
        assert await components.storage.queue.size(Queues.DETECT_TRANSLATION) == 1
        # Rendering never calls the provider
        assert fake_provider_cls.detect_calls == []

    async def test_repeated_renders_enqueue_once(self, components, make_post, member, config):
        post = await make_post()
        
        for _ in range(5):
            await components.visibility.evaluate(post, member, config)
        
        assert await components.storage.queue.size(Queues.DETECT_TRANSLATION) == 1

    async def test_button_appears_after_worker_runs(self, components, make_post, member, config):
        post = await make_post()
        assert await components.visibility.evaluate(post, member, config) == CanTranslate.HIDDEN
        
        await components.worker().drain()
        
        assert await components.visibility.evaluate(post, member, config) == CanTranslate.SHOW_BUTTON

    async def test_stale_detection_counts_as_undetected(self, components, make_post, member, config):
        post = await make_post()
        await components.state_store.set_detected_language(post.id, "fr", version=post.version - 1)
        
        result = await components.visibility.evaluate(post, member, config)
        
        assert result == CanTranslate.HIDDEN
        assert await components.storage.queue.size(Queues.DETECT_TRANSLATION) == 1

    async def test_render_after_create_does_not_enqueue_again(
        self, components, member, config
    ):
        post = await components.posts.create("Bonjour tout le monde")
        
        await components.visibility.evaluate(post, member, config)
        
        assert await components.storage.queue.size(Queues.DETECT_TRANSLATION) == 1
