# tests/test_dispatch_and_single_flight.py
"""Notification dispatch semantics and the toggle single-flight guard."""

import threading
import uuid

import pytest

from huddle.core.errors import ConcurrencyConflictError
from huddle.services import ConversationKind, DirectMessageService, FavoriteService
from huddle.services.notifications import Dispatcher, RecordingNotificationGateway
from huddle.services.single_flight import SingleFlight


class ExplodingGateway:
    def notify_user(self, user_id, event_name, payload):
        raise ConnectionError("socket closed")

    def notify_channel_members(self, channel_id, member_ids, event_name, payload):
        raise ConnectionError("socket closed")


def test_dispatch_failure_does_not_undo_the_command(uow, conversation, alice, bob) -> None:
    service = DirectMessageService(uow, ExplodingGateway())

    result = service.send_message(conversation.id, alice, content="still delivered")

    assert result.ok
    stored = uow.direct_messages.get_by_id(result.value.id)
    assert stored is not None and stored.receiver_id == bob


def test_dispatcher_dedupes_recipients() -> None:
    gateway = RecordingNotificationGateway()
    user = uuid.uuid4()

    Dispatcher(gateway).to_users([user, user], "ping", {})

    assert [e.user_id for e in gateway.events] == [user]


def test_failed_command_emits_no_event(make_service, gateway, conversation, carol) -> None:
    make_service(DirectMessageService).send_message(conversation.id, carol, content="nope")
    assert gateway.events == []


def test_concurrency_conflict_becomes_failed_result(make_service, conversation, alice, monkeypatch) -> None:
    message = make_service(DirectMessageService).send_message(conversation.id, alice, content="x").value
    service = make_service(FavoriteService)

    def conflicting_commit() -> None:
        raise ConcurrencyConflictError("The data was modified by another request. Please retry.")

    monkeypatch.setattr(service.uow, "commit", conflicting_commit)
    result = service.toggle_favorite(ConversationKind.DIRECT, message.id, alice)

    assert not result.ok
    assert result.code == "concurrency_conflict"


class TestSingleFlight:
    def test_overlapping_calls_share_one_execution(self) -> None:
        flight = SingleFlight()
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_toggle() -> str:
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return "toggled"

        results = []
        leader = threading.Thread(target=lambda: results.append(flight.do("key", slow_toggle)))
        leader.start()
        assert started.wait(timeout=5)
        assert flight.in_flight("key")

        call = flight._calls["key"]
        waiting = threading.Event()
        original_wait = call.done.wait

        def observed_wait(timeout=None):
            waiting.set()
            return original_wait(timeout)

        call.done.wait = observed_wait
        follower = threading.Thread(target=lambda: results.append(flight.do("key", slow_toggle)))
        follower.start()
        assert waiting.wait(timeout=5)
        release.set()
        leader.join(timeout=5)
        follower.join(timeout=5)

        assert results == ["toggled", "toggled"]
        assert len(calls) == 1
        assert not flight.in_flight("key")

    def test_sequential_calls_run_again(self) -> None:
        flight = SingleFlight()
        counter = iter(range(10))

        assert flight.do("key", lambda: next(counter)) == 0
        assert flight.do("key", lambda: next(counter)) == 1

    def test_errors_propagate_and_clear_the_key(self) -> None:
        flight = SingleFlight()

        def boom() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            flight.do("key", boom)
        assert not flight.in_flight("key")
