"""
Unit Tests for EventBus
=======================

Purpose
-------
Test subscription, wildcard routing, tiered execution and listener error
isolation.

Test Coverage
-------------
- Exact and wildcard subscriptions
- Priority ordering (CRITICAL, HIGH, NORMAL) and LOW fire-and-forget
- Callback signature validation and duplicate prevention
- once=True listeners and unsubscription
- Listener errors and timeouts counted, never raised
- Sync callbacks

Testing Strategy
----------------
- Real EventBus, plain async functions as listeners
- AAA pattern (Arrange, Act, Assert)
"""

import asyncio

import pytest

from lifequest.core.event import EventBus, ListenerPriority
from lifequest.core.event.router import EventRouter


@pytest.fixture
def bus():
    return EventBus()


# ============================================================================
# ROUTING TESTS
# ============================================================================


@pytest.mark.unit
class TestEventRouter:
    """Test wildcard matching."""

    @pytest.mark.parametrize(
        "event_name,pattern,expected",
        [
            ("main_quest.completed", "main_quest.*", True),
            ("main_quest.step_completed", "main_quest.*", True),
            ("daily_quest.reset", "*.reset", True),
            ("xp.awarded", "*", True),
            ("xp.awarded", "main_quest.*", False),
            ("xp.awarded", "xp.awarded", True),
            ("main_quest.reset_all", "main_quest.*_all", True),
            ("ab", "ab*b", False),
        ],
    )
    def test_matches(self, event_name, pattern, expected):
        assert EventRouter().matches(event_name, pattern) is expected


# ============================================================================
# SUBSCRIPTION TESTS
# ============================================================================


@pytest.mark.unit
class TestSubscription:
    """Test subscribe / publish / unsubscribe."""

    async def test_publish_reaches_listener(self, bus):
        # Arrange
        received = []

        async def on_xp(payload):
            received.append(payload["amount"])

        bus.subscribe("xp.awarded", on_xp)

        # Act
        await bus.publish("xp.awarded", {"amount": 30})

        # Assert
        assert received == [30]

    async def test_wildcard_listener(self, bus):
        received = []

        async def on_main_quest(payload):
            received.append(payload["quest_id"])

        bus.subscribe("main_quest.*", on_main_quest)

        await bus.publish("main_quest.step_completed", {"quest_id": "career-1"})
        await bus.publish("daily_quest.completed", {"quest_id": 1})

        assert received == ["career-1"]

    async def test_no_listeners_returns_empty(self, bus):
        assert await bus.publish("xp.awarded", {"amount": 30}) == []

    def test_wrong_signature_rejected(self, bus):
        async def two_args(payload, extra):
            return None

        with pytest.raises(ValueError):
            bus.subscribe("xp.awarded", two_args)

    def test_duplicate_subscription_prevented(self, bus):
        async def on_xp(payload):
            return None

        first = bus.subscribe("xp.awarded", on_xp)
        second = bus.subscribe("xp.awarded", on_xp)

        assert first == second
        assert bus.get_listener_count("xp.awarded") == 1

    async def test_once_listener_runs_once(self, bus):
        calls = []

        async def on_reset(payload):
            calls.append(payload)

        bus.subscribe("daily_quest.reset", on_reset, once=True)

        await bus.publish("daily_quest.reset", {"quest_count": 15})
        await bus.publish("daily_quest.reset", {"quest_count": 15})

        assert len(calls) == 1
        assert bus.get_listener_count("daily_quest.reset") == 0

    async def test_unsubscribe(self, bus):
        calls = []

        async def on_xp(payload):
            calls.append(payload)

        identifier = bus.subscribe("xp.awarded", on_xp)

        assert bus.unsubscribe("xp.awarded", identifier) is True
        await bus.publish("xp.awarded", {"amount": 30})
        assert calls == []
        assert bus.unsubscribe("xp.awarded", identifier) is False

    def test_clear(self, bus):
        async def on_xp(payload):
            return None

        bus.subscribe("xp.awarded", on_xp)
        bus.subscribe("*", on_xp, identifier="audit")
        assert bus.get_all_events() == ["*", "xp.awarded"]

        bus.clear()

        assert bus.get_listener_count() == 0
        assert bus.get_metrics_summary()["total_listeners"] == 0


# ============================================================================
# EXECUTION TESTS
# ============================================================================


@pytest.mark.unit
class TestExecution:
    """Test tier ordering and isolation."""

    async def test_priority_order(self, bus):
        # Arrange
        order = []

        def make(name):
            async def listener(payload):
                order.append(name)

            return listener

        bus.subscribe("xp.awarded", make("normal"), identifier="normal")
        bus.subscribe("xp.awarded", make("high"), identifier="high", priority=ListenerPriority.HIGH)
        bus.subscribe("xp.awarded", make("critical"), identifier="critical", priority=ListenerPriority.CRITICAL)

        # Act
        await bus.publish("xp.awarded", {"amount": 30})

        # Assert
        assert order == ["critical", "high", "normal"]

    async def test_low_priority_runs_in_background(self, bus):
        # Arrange
        gate = asyncio.Event()
        done = []

        async def analytics(payload):
            await gate.wait()
            done.append(payload["amount"])

        bus.subscribe("xp.awarded", analytics, priority=ListenerPriority.LOW)

        # Act
        results = await bus.publish("xp.awarded", {"amount": 30})
        pending_before_release = list(done)
        gate.set()
        await bus.drain()

        # Assert
        assert results == []
        assert pending_before_release == []
        assert done == [30]

    async def test_listener_error_isolated_and_counted(self, bus):
        # Arrange
        received = []

        async def broken(payload):
            raise RuntimeError("listener failed")

        async def healthy(payload):
            received.append(payload)

        bus.subscribe("main_quest.completed", broken)
        bus.subscribe("main_quest.completed", healthy)

        # Act
        results = await bus.publish("main_quest.completed", {"quest_id": "career-1"})

        # Assert
        assert len(received) == 1
        assert None in results
        summary = bus.get_metrics_summary()
        assert summary["total_errors"] == 1
        assert summary["errors_by_event"] == {"main_quest.completed": 1}

    async def test_high_priority_timeout(self):
        # Arrange
        bus = EventBus(high_timeout_seconds=0.01)

        async def slow(payload):
            await asyncio.sleep(1)

        bus.subscribe("xp.awarded", slow, priority=ListenerPriority.HIGH)

        # Act
        results = await bus.publish("xp.awarded", {"amount": 30})

        # Assert
        assert results == [None]
        assert bus.get_metrics_summary()["total_errors"] == 1

    async def test_sync_listener(self, bus):
        received = []

        def on_xp(payload):
            received.append(payload["amount"])
            return "ok"

        bus.subscribe("xp.awarded", on_xp)

        results = await bus.publish("xp.awarded", {"amount": 80})

        assert received == [80]
        assert results == ["ok"]

    async def test_metrics_summary(self, bus):
        async def on_any(payload):
            return None

        bus.subscribe("*", on_any)

        await bus.publish("xp.awarded", {"amount": 30})
        await bus.publish("xp.awarded", {"amount": 30})
        await bus.publish("daily_quest.completed", {"quest_id": 1})

        summary = bus.get_metrics_summary()
        assert summary["total_events_published"] == 3
        assert summary["events_by_type"] == {"xp.awarded": 2, "daily_quest.completed": 1}
        assert summary["error_rate"] == 0.0

    def test_timeouts_from_config(self, config_manager):
        config_manager.set("core.event.listener_timeout.high_seconds", "not-a-number")

        bus = EventBus(config_manager=config_manager)

        assert bus._high_timeout == 5.0
        assert bus._critical_timeout == 5.0
