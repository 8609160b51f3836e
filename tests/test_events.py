"""Tests for tournamentflow.events — subscribe/unsubscribe/publish."""

import logging

from tournamentflow.events import EventBus


class TestSubscribe:
    def test_publish_reaches_subscribers_in_order(self):
        bus = EventBus()
        calls = []
        bus.subscribe("tournament_created", lambda p: calls.append(("a", p)))
        bus.subscribe("tournament_created", lambda p: calls.append(("b", p)))
        bus.publish("tournament_created", 1)
        assert calls == [("a", 1), ("b", 1)]

    def test_other_events_not_notified(self):
        bus = EventBus()
        calls = []
        bus.subscribe("player_registered", calls.append)
        bus.publish("tournament_created", 1)
        assert calls == []

    def test_publish_without_subscribers(self):
        EventBus().publish("nothing", None)

    def test_same_callback_twice_runs_twice(self):
        bus = EventBus()
        calls = []
        bus.subscribe("e", calls.append)
        bus.subscribe("e", calls.append)
        bus.publish("e", "x")
        assert calls == ["x", "x"]


class TestUnsubscribe:
    def test_removes_first_instance_only(self):
        bus = EventBus()
        calls = []
        bus.subscribe("e", calls.append)
        bus.subscribe("e", calls.append)
        bus.unsubscribe("e", calls.append)
        bus.publish("e", "x")
        assert calls == ["x"]
        assert len(bus.listeners("e")) == 1

    def test_unknown_callback_is_noop(self):
        bus = EventBus()
        bus.unsubscribe("e", print)
        bus.subscribe("e", len)
        bus.unsubscribe("e", print)
        assert bus.listeners("e") == [len]

    def test_unsubscribe_during_publish(self):
        bus = EventBus()
        calls = []

        def once(payload):
            calls.append("once")
            bus.unsubscribe("e", once)

        bus.subscribe("e", once)
        bus.subscribe("e", lambda p: calls.append("always"))
        bus.publish("e", None)
        bus.publish("e", None)
        assert calls == ["once", "always", "always"]


class TestFaultIsolation:
    def test_failing_subscriber_logged_and_skipped(self, caplog):
        bus = EventBus()
        calls = []

        def broken(payload):
            raise ValueError("boom")

        bus.subscribe("e", calls.append)
        bus.subscribe("e", broken)
        bus.subscribe("e", calls.append)

        with caplog.at_level(logging.ERROR):
            bus.publish("e", 7)

        assert calls == [7, 7]
        assert "Error in e listener" in caplog.text
        assert isinstance(caplog.records[0].exc_info[1], ValueError)
