"""Session registry for SQL Workbench.

Owns the set of query tabs and the active-tab pointer. Every mutation goes
through the registry; callers only ever see frozen Session snapshots.

Operations on an unknown session id are silent no-ops.
"""

from __future__ import annotations

import itertools
import threading
from typing import TYPE_CHECKING

from sql_workbench.core.models import QueryFailure, QueryResult, Session

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

DEFAULT_DRAFT = "-- Write your SQL query here\n"
COPY_SUFFIX = " (Copy)"


class SessionRegistry:
    """Ordered collection of query sessions with exactly one active member."""

    def __init__(
        self,
        *,
        id_factory: Callable[[], str] | None = None,
        initial_draft: str | None = None,
        new_draft: str = DEFAULT_DRAFT,
    ) -> None:
        self._counter = itertools.count(1)
        self._id_factory = id_factory
        self._new_draft = new_draft
        self._sessions: dict[str, Session] = {}
        self._issued: set[str] = set()
        self._lock = threading.RLock()
        first = self._new_session(
            draft=initial_draft if initial_draft is not None else new_draft
        )
        self._sessions[first.id] = first
        self._active_id = first.id

    def _new_session(self, draft: str | None = None, title: str | None = None) -> Session:
        n = next(self._counter)
        session_id = self._id_factory() if self._id_factory else f"tab-{n}"
        if session_id in self._issued:
            msg = f"id factory returned a previously issued id: {session_id!r}"
            raise ValueError(msg)
        self._issued.add(session_id)
        return Session(
            id=session_id,
            title=title if title is not None else f"Query {n}",
            draft_query=self._new_draft if draft is None else draft,
        )

    def _replace(self, session_id: str, **changes: object) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            return
        self._sessions[session_id] = session.model_copy(update=changes)

    # -- Read access --

    @property
    def active_id(self) -> str:
        return self._active_id

    @property
    def sessions(self) -> tuple[Session, ...]:
        return tuple(self._sessions.values())

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def get_active(self) -> Session:
        return self._sessions[self._active_id]

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __iter__(self) -> Iterator[Session]:
        return iter(self.sessions)

    # -- Structural mutations --

    def create_session(self) -> str:
        """Add a fresh session, make it active and return its id."""
        with self._lock:
            session = self._new_session()
            self._sessions[session.id] = session
            self._active_id = session.id
            return session.id

    def close_session(self, session_id: str) -> None:
        """Remove a session, keeping at least one session in the registry.

        Closing the active session activates the last remaining session.
        Closing the only session replaces it with a fresh default one.
        """
        with self._lock:
            if session_id not in self._sessions:
                return
            del self._sessions[session_id]
            if not self._sessions:
                replacement = self._new_session()
                self._sessions[replacement.id] = replacement
                self._active_id = replacement.id
            elif session_id == self._active_id:
                self._active_id = next(reversed(self._sessions))

    def duplicate_session(self, session_id: str) -> str | None:
        """Copy title and draft into a new active session.

        The copy starts idle with no result. Returns the new id, or None
        when the source session does not exist.
        """
        with self._lock:
            source = self._sessions.get(session_id)
            if source is None:
                return None
            copy = self._new_session(
                draft=source.draft_query, title=f"{source.title}{COPY_SUFFIX}"
            )
            self._sessions[copy.id] = copy
            self._active_id = copy.id
            return copy.id

    def set_active(self, session_id: str) -> None:
        with self._lock:
            if session_id in self._sessions:
                self._active_id = session_id

    # -- Field mutations --

    def rename_session(self, session_id: str, title: str) -> None:
        title = title.strip()
        if not title:
            return
        with self._lock:
            self._replace(session_id, title=title)

    def update_draft(self, session_id: str, text: str) -> None:
        with self._lock:
            self._replace(session_id, draft_query=text)

    def update_result(
        self, session_id: str, result: QueryResult | QueryFailure | None
    ) -> None:
        with self._lock:
            self._replace(session_id, last_result=result)

    def set_running(self, session_id: str, running: bool) -> None:
        """Toggle the in-flight flag. Reserved for ExecutionCoordinator."""
        with self._lock:
            self._replace(session_id, running=running)
