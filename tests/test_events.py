"""
Tests for the event bus and the Sentry event filter.
"""

from fastapi import HTTPException

from babelpost.core.errors import ProviderUnavailable, RateLimited
from babelpost.core.events import (
    POST_EDITED,
    Event,
    EventBus,
    post_edited,
    post_revised,
)
from babelpost.integrations.sentry import _filter_events, _filter_transactions


# =============================================================================
# EventBus
# =============================================================================


class TestEventBus:
    async def test_pattern_subscription(self):
        bus = EventBus()
        seen = []
        
        async def handler(event):
            seen.append(event.event_type)
            return []
        
        bus.subscribe("post.*", handler)
        await bus.publish(post_edited("p1", raw_changed=True))
        await bus.publish(post_revised("p1"))
        
        assert seen == ["post.edited", "post.revised"]

    async def test_handler_results_cascade(self):
        bus = EventBus()
        
        async def on_edit(event):
            return [post_revised(event.post_id)]
        
        bus.subscribe(POST_EDITED, on_edit)
        edit = post_edited("p1", raw_changed=True)
        produced = await bus.publish(edit)
        
        assert [e.event_type for e in produced] == ["post.revised"]
        assert produced[0].post_id == edit.post_id
        assert len(bus.get_history("post.revised", "p1")) == 1

    async def test_failing_handler_does_not_stop_others(self):
        bus = EventBus()
        seen = []
        
        async def broken(event):
            raise RuntimeError("boom")
        
        async def working(event):
            seen.append(event.post_id)
            return []
        
        bus.subscribe("post.*", broken)
        bus.subscribe("post.*", working)
        await bus.publish(post_revised("p1"))
        
        assert seen == ["p1"]

    async def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        
        async def handler(event):
            seen.append(event)
            return []
        
        subscription = bus.subscribe("post.*", handler)
        bus.unsubscribe(subscription)
        await bus.publish(post_revised("p1"))
        
        assert seen == []

    def test_round_trip_dict(self):
        event = post_edited("p1", raw_changed=False, user_id="user_1")
        restored = Event.from_dict(event.to_dict())
        
        assert restored.event_type == "post.edited"
        assert restored.id == event.id
        assert restored.timestamp == event.timestamp
        assert restored.payload == {"raw_changed": False}
        assert restored.user_id == "user_1"


# =============================================================================
# Sentry filtering
# =============================================================================


class TestSentryFilter:
    def test_expected_errors_dropped(self):
        for error in (RateLimited(), HTTPException(status_code=404), ProviderUnavailable("down")):
            assert _filter_events({}, {"exc_info": (type(error), error, None)}) is None

    def test_unexpected_errors_kept(self):
        error = RuntimeError("boom")
        event = {"message": "boom"}
        assert _filter_events(event, {"exc_info": (RuntimeError, error, None)}) is event

    def test_credentials_scrubbed(self):
        event = {
            "request": {
                "headers": {"Authorization": "Bearer x", "Ocp-Apim-Subscription-Key": "k"},
                "query_string": "key=secret&q=hello",
            }
        }
        
        filtered = _filter_events(event, {})
        
        assert filtered["request"]["headers"]["Authorization"] == "[Filtered]"
        assert filtered["request"]["headers"]["Ocp-Apim-Subscription-Key"] == "[Filtered]"
        assert filtered["request"]["query_string"] == "[Filtered]"

    def test_health_transactions_dropped(self):
        assert _filter_transactions({"transaction": "/health"}, {}) is None
        assert _filter_transactions({"transaction": "/translator/translate"}, {}) is not None
