"""
Tests for sessions and the session registry.

Tests:
- Sequential id allocation, including under concurrency
- Address derivation and lookup
- Single-writer request handling
- Observer delivery and failure isolation
"""

import logging
import threading

import pytest

from noughts.engine_core import Action, GamePhase, Mark, MAX_SESSION_ID, RejectionKind
from noughts.session import SessionIdAllocator, SessionManager, derive_session_address

from .conftest import OUTSIDER, PLAYER_O, PLAYER_X


class TestSessionIdAllocator:
    """Tests for the id counter."""

    def test_starts_at_one(self):
        allocator = SessionIdAllocator()
        assert allocator.next_id == 1
        assert allocator.allocate() == 1
        assert allocator.allocate() == 2
        assert allocator.next_id == 3

    def test_rejects_zero_start(self):
        with pytest.raises(ValueError):
            SessionIdAllocator(start=0)

    def test_exhaustion(self):
        allocator = SessionIdAllocator(start=MAX_SESSION_ID)
        assert allocator.allocate() == MAX_SESSION_ID
        with pytest.raises(OverflowError):
            allocator.allocate()

    def test_concurrent_allocation_unique(self):
        allocator = SessionIdAllocator()
        results: list[int] = []
        results_lock = threading.Lock()

        def worker():
            ids = [allocator.allocate() for _ in range(200)]
            with results_lock:
                results.extend(ids)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == list(range(1, 1601))


class TestSessionManager:
    """Tests for the registry."""

    def test_sequential_ids(self, manager):
        assert manager.next_session_id == 1
        assert manager.create_session(PLAYER_X) == 1
        assert manager.create_session(PLAYER_O) == 2
        assert manager.next_session_id == 3

    def test_new_session_waits_for_opponent(self, manager):
        session = manager.get_session(manager.create_session(PLAYER_X))

        assert session.phase == GamePhase.WAITING
        assert session.player_x == PLAYER_X
        assert session.player_o is None
        assert session.current_turn == Mark.X
        assert session.total_moves == 0
        assert session.x_board == 0
        assert session.o_board == 0
        assert session.winner is None

    def test_shared_allocator(self):
        allocator = SessionIdAllocator(start=10)
        manager = SessionManager(allocator=allocator)

        assert manager.create_session(PLAYER_X) == 10
        assert allocator.next_id == 11

    def test_address_lookup(self, manager):
        session_id = manager.create_session(PLAYER_X)
        address = derive_session_address(session_id, PLAYER_X)

        session = manager.get_session_by_address(address)
        assert session is not None
        assert session.session_id == session_id
        assert session.address == address
        assert manager.get_session_by_address("0" * 64) is None

    def test_address_is_deterministic(self):
        assert derive_session_address(1, PLAYER_X) == derive_session_address(1, PLAYER_X)
        assert derive_session_address(1, PLAYER_X) != derive_session_address(2, PLAYER_X)
        assert derive_session_address(1, PLAYER_X) != derive_session_address(1, PLAYER_O)

    def test_unknown_session(self, manager):
        assert manager.get_session(99) is None
        assert manager.dispatch(99, Action.join(PLAYER_O)) is None

    def test_dispatch(self, manager):
        session_id = manager.create_session(PLAYER_X)
        result = manager.dispatch(session_id, Action.join(PLAYER_O))

        assert result.success
        assert manager.get_session(session_id).phase == GamePhase.ACTIVE

    def test_sessions_are_independent(self, manager):
        first = manager.get_session(manager.create_session(PLAYER_X))
        second = manager.get_session(manager.create_session(PLAYER_X))

        first.join(PLAYER_O)
        first.move(PLAYER_X, 4)

        assert second.phase == GamePhase.WAITING
        assert second.x_board == 0

    def test_list_sessions(self, manager, active_session):
        waiting_id = manager.create_session(OUTSIDER)
        active_session.forfeit(PLAYER_X)

        assert manager.list_sessions() == [active_session.session_id, waiting_id]
        assert manager.list_active_sessions() == [waiting_id]

    def test_concurrent_creation(self, manager):
        created: list[int] = []
        lock = threading.Lock()

        def worker(n):
            for i in range(50):
                session_id = manager.create_session(f"creator-{n}-{i}")
                with lock:
                    created.append(session_id)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(created) == list(range(1, 301))
        assert manager.list_sessions() == list(range(1, 301))
        for session_id in created:
            assert manager.get_session(session_id).session_id == session_id


class TestSessionHandling:
    """Tests for request handling on a Session."""

    def test_accepted_actions_logged(self, active_session):
        active_session.move(PLAYER_X, 0)
        active_session.move(PLAYER_X, 1)  # rejected, O's turn
        active_session.query_state(PLAYER_X)

        assert [a.action_type.value for a in active_session.history] == ["join", "move"]

    def test_rejection_keeps_state(self, active_session):
        before = active_session.state
        result = active_session.move(PLAYER_O, 0)

        assert result.error_code == RejectionKind.NOT_YOUR_TURN
        assert active_session.state is before

    def test_full_game(self, active_session):
        for player, position in [
            (PLAYER_X, 0), (PLAYER_O, 1), (PLAYER_X, 4), (PLAYER_O, 2), (PLAYER_X, 8),
        ]:
            assert active_session.move(player, position).success

        assert active_session.phase == GamePhase.X_WON
        assert active_session.winner == PLAYER_X
        assert not active_session.is_active()

        result = active_session.query_state(OUTSIDER, 5)
        assert result.success
        assert result.deliveries[0].notification.state == GamePhase.X_WON

    def test_concurrent_joins_single_winner(self, manager):
        session = manager.get_session(manager.create_session(PLAYER_X))
        outcomes = []
        lock = threading.Lock()
        barrier = threading.Barrier(10)

        def worker(n):
            barrier.wait()
            result = session.join(f"joiner-{n}")
            with lock:
                outcomes.append(result.error_code)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count(None) == 1
        assert outcomes.count(RejectionKind.SLOT_TAKEN) == 9
        assert session.state.invariant_violations() == []

    def test_concurrent_moves_keep_invariants(self, active_session):
        barrier = threading.Barrier(2)

        def worker(player):
            barrier.wait()
            while active_session.is_active():
                for position in range(9):
                    active_session.move(player, position)

        threads = [threading.Thread(target=worker, args=(p,)) for p in (PLAYER_X, PLAYER_O)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        state = active_session.state
        assert state.is_terminal
        assert state.invariant_violations() == []
        assert len(active_session.history) == 1 + state.total_moves


class TestObservers:
    """Tests for notification delivery."""

    def test_observer_receives_deliveries(self, manager):
        session = manager.get_session(manager.create_session(PLAYER_X))
        received = []
        session.subscribe(received.append)

        session.join(PLAYER_O)
        session.move(PLAYER_X, 0)
        session.move(PLAYER_X, 1)  # rejected: nothing delivered

        assert [(d.recipient, d.kind) for d in received] == [
            (PLAYER_O, "player_joined"),
            (PLAYER_X, "move_made"),
        ]

    def test_game_end_fanout(self, active_session):
        received = []
        active_session.subscribe(received.append)

        active_session.forfeit(PLAYER_O)

        assert {d.recipient for d in received} == {PLAYER_X, PLAYER_O}
        assert all(d.notification.winner == PLAYER_X for d in received)

    def test_unsubscribe(self, active_session):
        received = []
        unsubscribe = active_session.subscribe(received.append)
        unsubscribe()

        active_session.move(PLAYER_X, 0)
        assert received == []

    def test_failing_observer_does_not_roll_back(self, active_session, caplog):
        received = []

        def broken(delivery):
            raise ConnectionError("peer gone")

        active_session.subscribe(broken)
        active_session.subscribe(received.append)

        with caplog.at_level(logging.ERROR, logger="noughts.session.manager"):
            result = active_session.move(PLAYER_X, 4)

        assert result.success
        assert active_session.x_board == 16
        assert len(received) == 1
        assert "observer failed" in caplog.text
