"""
Unit tests for session state and pending pagination.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_design_gateway.app.session.state import SessionState
from shared.logging import file_key_var, operation_id_var, set_file_context
from shared.test_helpers import FakeClock


class TestSessionState:
    """Test cases for SessionState."""

    @pytest.fixture
    def clock(self):
        return FakeClock(start=1704110400.0)

    @pytest.fixture
    def session(self, clock):
        return SessionState(clock=clock)

    def test_initial_state(self, session):
        state = session.get_state()

        assert state["currentFile"] is None
        assert state["exploredPages"] == []
        assert state["pendingOperations"] == []
        assert state["hasLastResponse"] is False
        assert state["lastUpdated"] == "2024-01-01T12:00:00+00:00"

    def test_switching_file_clears_file_scoped_state(self, session):
        session.set_current_file("A")
        session.mark_page_explored("0:1")
        session.mark_frame_explored("1:1")
        session.cache_node("A", "1:1", {"id": "1:1"})
        session.store_pending_chunks("list_frames:A:Mobile", [[1], [2]])
        session.store_last_response({"data": "x"})

        session.set_current_file("B")

        assert session.current_file == "B"
        assert session.explored_pages == set()
        assert session.explored_frames == set()
        assert session.pending_operations == {}
        assert session.get_cached_node("A", "1:1") is None
        assert session.get_last_response() == {"data": "x"}

    def test_same_file_keeps_state(self, session):
        session.set_current_file("A")
        session.mark_page_explored("0:1")
        session.store_pending_chunks("op", [[1], [2]])

        session.set_current_file("A")

        assert session.explored_pages == {"0:1"}
        assert session.has_pending_chunks("op")

    def test_chunks_delivered_in_order(self, session):
        items = list(range(45))
        pages = [items[0:20], items[20:40], items[40:45]]
        session.store_pending_chunks("op", pages)

        second = session.get_next_chunk("op")
        assert second.items == items[20:40]
        assert (second.page_index, second.total_pages, second.total_items) == (2, 3, 45)
        assert second.has_more

        third = session.get_next_chunk("op")
        assert third.items == items[40:45]
        assert third.page_index == 3
        assert not third.has_more
        assert not session.has_pending_chunks("op")

        assert session.get_next_chunk("op") is None

    def test_unknown_operation(self, session):
        assert session.get_next_chunk("missing") is None
        assert not session.has_pending_chunks("missing")

    def test_single_page_is_not_registered(self, session):
        session.store_pending_chunks("op", [[1, 2]])

        assert "op" not in session.pending_operations

    def test_restoring_operation_restarts_it(self, session):
        session.store_pending_chunks("op", [[1], [2], [3]])
        session.get_next_chunk("op")

        session.store_pending_chunks("op", [["a"], ["b"]])

        assert session.get_next_chunk("op").items == ["b"]

    def test_state_snapshot_sorted(self, session, clock):
        session.set_current_file("A")
        session.mark_page_explored("0:2")
        session.mark_page_explored("0:1")
        session.store_pending_chunks("z", [[1], [2]])
        session.store_pending_chunks("a", [[1], [2]])
        clock.now += 60
        session.store_last_response({"data": 1})

        state = session.get_state()

        assert state["currentFile"] == "A"
        assert state["exploredPages"] == ["0:1", "0:2"]
        assert state["pendingOperations"] == ["a", "z"]
        assert state["hasLastResponse"] is True
        assert state["lastUpdated"] == "2024-01-01T12:01:00+00:00"

    def test_reset(self, session):
        session.set_current_file("A")
        session.store_last_response({"data": 1})

        session.reset()

        assert session.current_file is None
        assert session.get_last_response() is None

    def test_file_context_follows_session(self, session):
        session.set_current_file("A")
        set_file_context(operation_id="list_frames:A:Mobile")
        assert file_key_var.get() == "A"

        session.set_current_file("B")
        assert file_key_var.get() == "B"
        assert operation_id_var.get() is None

        session.reset()
        assert file_key_var.get() is None
