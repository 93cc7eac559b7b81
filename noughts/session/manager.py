"""
Session Manager - Creates and tracks game sessions.

LIFECYCLE:
1. A creator asks the registry for a session -> next sequential id,
   deterministic address, Session in WAITING with the creator as X
2. A second party joins -> ACTIVE
3. Moves alternate until a line, a full board or a forfeit -> terminal
4. A terminal session stays queryable; it is never removed

CONCURRENCY:
- Id allocation is an atomic increment-and-read on an explicitly
  owned SessionIdAllocator
- Each Session serializes its requests behind its own lock: validate,
  mutate and notify complete before the next request starts
- Sessions share no mutable state with each other

PERSISTENCE:
- None. Sessions live in memory for the lifetime of the manager.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import hashlib
import logging
import threading
import time

from ..engine_core.action import Action, ActionResult
from ..engine_core.notifications import Delivery
from ..engine_core.reducer import Reducer
from ..engine_core.state import GamePhase, GameState, Mark, MAX_SESSION_ID

logger = logging.getLogger(__name__)

Observer = Callable[[Delivery], None]


def derive_session_address(session_id: int, creator_id: str) -> str:
    """Deterministic handle for a session, derived from (id, creator)."""
    return hashlib.sha256(f"{session_id}:{creator_id}".encode("utf-8")).hexdigest()


@dataclass
class Session:
    """
    One match.

    Contains:
    - The current canonical GameState (replaced, never mutated)
    - A lock giving single-writer semantics
    - Observers receiving every delivery the session emits
    - The log of accepted actions
    """
    session_id: int
    address: str
    state: GameState
    created_at: float = field(default_factory=time.time)

    history: list[Action] = field(default_factory=list)
    _observers: list[Observer] = field(default_factory=list, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _reducer: Reducer = field(default_factory=Reducer, repr=False)

    # Read-only views of the current state

    @property
    def phase(self) -> GamePhase:
        return self.state.phase

    @property
    def player_x(self) -> str:
        return self.state.player_x

    @property
    def player_o(self) -> str | None:
        return self.state.player_o

    @property
    def current_turn(self) -> Mark:
        return self.state.current_turn

    @property
    def x_board(self) -> int:
        return self.state.x_board

    @property
    def o_board(self) -> int:
        return self.state.o_board

    @property
    def total_moves(self) -> int:
        return self.state.total_moves

    @property
    def winner(self) -> str | None:
        return self.state.winner

    def is_active(self) -> bool:
        """Check if the session can still change."""
        return not self.state.is_terminal

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Register an observer for outbound deliveries.

        Observers run while the session lock is held and must not call
        back into the same session. Returns an unsubscribe function.
        """
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def handle(self, action: Action) -> ActionResult:
        """
        Apply one request to completion.

        The state is swapped only when the reducer accepts the request.
        Deliveries are then handed to observers; a failing observer is
        logged and does not undo the state change.
        """
        with self._lock:
            result = self._reducer.apply(self.state, action)
            if not result.success:
                return result

            if result.new_state is not self.state:
                self.state = result.new_state
                self.history.append(action)

            for delivery in result.deliveries:
                self._deliver(delivery)

            return result

    def _deliver(self, delivery: Delivery) -> None:
        for observer in list(self._observers):
            try:
                observer(delivery)
            except Exception:
                logger.exception(
                    f"Session {self.session_id}: observer failed on {delivery.kind} "
                    f"for {delivery.recipient}"
                )

    def join(self, player_id: str) -> ActionResult:
        return self.handle(Action.join(player_id))

    def move(self, player_id: str, position: int) -> ActionResult:
        return self.handle(Action.move(player_id, position))

    def forfeit(self, player_id: str) -> ActionResult:
        return self.handle(Action.forfeit(player_id))

    def query_state(self, player_id: str, correlation_id: int = 0) -> ActionResult:
        return self.handle(Action.query_state(player_id, correlation_id))


class SessionIdAllocator:
    """
    Counter store for session ids.

    allocate() is an atomic increment-and-read: every call returns a
    distinct id, in sequence, starting at `start`.
    """

    def __init__(self, start: int = 1):
        if start < 1:
            raise ValueError("Session ids start at 1 or above")
        self._next_id = start
        self._lock = threading.Lock()

    @property
    def next_id(self) -> int:
        """The id the next allocate() will return."""
        with self._lock:
            return self._next_id

    def allocate(self) -> int:
        with self._lock:
            session_id = self._next_id
            if session_id > MAX_SESSION_ID:
                raise OverflowError("Session id space exhausted")
            self._next_id += 1
            return session_id


class SessionManager:
    """
    Registry of game sessions.

    Responsibilities:
    - Allocate sequential session ids
    - Create sessions with the creator seated as X
    - Look sessions up by id or address

    No persistence - sessions are in-memory only.
    """

    def __init__(self, allocator: SessionIdAllocator | None = None):
        self._allocator = allocator or SessionIdAllocator()
        self._sessions: dict[int, Session] = {}
        self._by_address: dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def next_session_id(self) -> int:
        return self._allocator.next_id

    def create_session(self, creator_id: str) -> int:
        """
        Create a new game session.

        Args:
            creator_id: Identity of the creating party; becomes player X

        Returns:
            The new session's id
        """
        session_id = self._allocator.allocate()
        address = derive_session_address(session_id, creator_id)
        session = Session(
            session_id=session_id,
            address=address,
            state=GameState.create(session_id, creator_id),
        )

        with self._lock:
            self._sessions[session_id] = session
            self._by_address[address] = session_id

        logger.info(f"Created session {session_id} for {creator_id}")
        return session_id

    def get_session(self, session_id: int) -> Session | None:
        """Get a session by ID."""
        with self._lock:
            return self._sessions.get(session_id)

    def get_session_by_address(self, address: str) -> Session | None:
        """Get a session by its derived address."""
        with self._lock:
            session_id = self._by_address.get(address)
            if session_id is None:
                return None
            return self._sessions.get(session_id)

    def dispatch(self, session_id: int, action: Action) -> ActionResult | None:
        """Route a request to its session. None if the session is unknown."""
        session = self.get_session(session_id)
        if session is None:
            return None
        return session.handle(action)

    def list_sessions(self) -> list[int]:
        """IDs of every session, in creation order."""
        with self._lock:
            return sorted(self._sessions)

    def list_active_sessions(self) -> list[int]:
        """IDs of sessions that have not reached a terminal phase."""
        with self._lock:
            sessions = list(self._sessions.values())
        return sorted(s.session_id for s in sessions if s.is_active())
