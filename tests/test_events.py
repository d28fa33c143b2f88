"""Tests for events.py."""

import pytest

from ypareo.events import EventManager


class TestEventManager:

    def test_listeners_run_in_registration_order(self):
        events = EventManager()
        calls = []
        events.on("login", lambda user: calls.append(("a", user)))
        events.on("login", lambda user: calls.append(("b", user)))

        assert events.emit("login", "jdupont") is True
        assert calls == [("a", "jdupont"), ("b", "jdupont")]

    def test_emit_without_listeners(self):
        assert EventManager().emit("ready") is False

    def test_once_fires_a_single_time(self):
        events = EventManager()
        calls = []
        events.once("ready", lambda: calls.append(1))
        events.emit("ready")
        events.emit("ready")
        assert calls == [1]
        assert events.listener_count("ready") == 0

    def test_off_removes_first_registration(self):
        events = EventManager()
        calls = []

        def listener():
            calls.append(1)

        events.on("logout", listener)
        events.on("logout", listener)
        events.off("logout", listener)
        events.emit("logout")
        assert calls == [1]

    def test_raising_listener_does_not_stop_others(self):
        events = EventManager()
        calls = []

        def broken(exc):
            raise RuntimeError("listener bug")

        events.on("error", broken)
        events.on("error", lambda exc: calls.append(exc))
        events.emit("error", ValueError("x"))
        assert len(calls) == 1

    def test_debug_messages_are_emitted(self):
        events = EventManager(debug=True)
        messages = []
        events.on("debug", messages.append)
        events.emit_debug("CSRF token extracted")
        assert messages == ["CSRF token extracted"]

    def test_unknown_event_rejected(self):
        with pytest.raises(ValueError):
            EventManager().on("loggedin", lambda: None)
