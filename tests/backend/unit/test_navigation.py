"""
Unit tests for services.navigation module.
"""
import pytest
from chatconnect.services.navigation import (
    INITIAL_VIEW,
    InvalidTransition,
    View,
    ViewEvent,
    ViewKind,
    transition,
)


class TestTransitions:
    def test_login_open_close_logout(self):
        view = transition(INITIAL_VIEW, ViewEvent.LOGGED_IN)
        assert view == View(ViewKind.HOME)

        view = transition(view, ViewEvent.OPEN_ROOM, room_id="X7K2QT")
        assert view == View(ViewKind.CHAT, "X7K2QT")

        view = transition(view, ViewEvent.CLOSE_ROOM)
        assert view == View(ViewKind.HOME)

        assert transition(view, ViewEvent.LOGGED_OUT) == INITIAL_VIEW

    def test_switching_rooms_from_chat(self):
        view = View(ViewKind.CHAT, "AAAAAA")
        assert transition(view, ViewEvent.OPEN_ROOM, room_id="BBBBBB").room_id == "BBBBBB"

    def test_deleted_room_returns_home(self):
        assert transition(View(ViewKind.CHAT, "AAAAAA"), ViewEvent.ROOM_DELETED) == View(ViewKind.HOME)

    def test_unlisted_transition_raises(self):
        with pytest.raises(InvalidTransition):
            transition(INITIAL_VIEW, ViewEvent.OPEN_ROOM, room_id="AAAAAA")
        with pytest.raises(InvalidTransition):
            transition(View(ViewKind.HOME), ViewEvent.LOGGED_IN)

    def test_open_room_requires_room_id(self):
        with pytest.raises(InvalidTransition):
            transition(View(ViewKind.HOME), ViewEvent.OPEN_ROOM)


class TestViewInvariant:
    def test_chat_view_needs_room_id(self):
        with pytest.raises(ValueError):
            View(ViewKind.CHAT)

    def test_home_view_rejects_room_id(self):
        with pytest.raises(ValueError):
            View(ViewKind.HOME, "AAAAAA")
