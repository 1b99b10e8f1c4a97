"""
Persistence of quiz progress, one record per (set, mode) pair.

Every public mutator is a single read-modify-write transaction that returns a
fresh Session. Objects handed out earlier are left as they were, so a failed
write never leaves the caller holding half-applied counters.
"""

import json
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from .config import settings
from .database import Database
from .errors import NotFound
from .models import QuizMode, Session, make_session_id
from .order_store import OrderStore, delete_order

logger = logging.getLogger(__name__)

_COLUMNS = (
    "session_id, set_id, score, current_index, total_questions, correct_count, "
    "incorrect_count, answered_item_ids, has_order_saved, last_accessed"
)


def _from_row(row: sqlite3.Row) -> Session:
    return Session(
        session_id=row["session_id"],
        set_id=row["set_id"],
        score=row["score"],
        current_index=row["current_index"],
        total_questions=row["total_questions"],
        correct_count=row["correct_count"],
        incorrect_count=row["incorrect_count"],
        answered_item_ids=json.loads(row["answered_item_ids"]),
        has_order_saved=bool(row["has_order_saved"]),
        last_accessed=datetime.fromisoformat(row["last_accessed"]),
    )


def _fetch(conn: sqlite3.Connection, session_id: str) -> Optional[Session]:
    row = conn.execute(
        f"SELECT {_COLUMNS} FROM sessions WHERE session_id = ?", (session_id,)
    ).fetchone()
    return _from_row(row) if row is not None else None


def _write(conn: sqlite3.Connection, session: Session):
    conn.execute(
        f"INSERT OR REPLACE INTO sessions ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (
            session.session_id,
            session.set_id,
            session.score,
            session.current_index,
            session.total_questions,
            session.correct_count,
            session.incorrect_count,
            json.dumps(session.answered_item_ids),
            int(session.has_order_saved),
            session.last_accessed.isoformat(),
        ),
    )


def _zeroed(session: Session, **changes) -> Session:
    return session.model_copy(
        update=dict(
            score=0,
            current_index=0,
            correct_count=0,
            incorrect_count=0,
            answered_item_ids=[],
            has_order_saved=False,
            last_accessed=datetime.now(),
            **changes,
        )
    )


class SessionStore:
    def __init__(
        self,
        db: Database,
        orders: Optional[OrderStore] = None,
        points_per_correct: Optional[int] = None,
    ):
        self.db = db
        self.orders = orders or OrderStore(db)
        self.points_per_correct = (
            settings.POINTS_PER_CORRECT if points_per_correct is None else points_per_correct
        )

    def get(self, set_id: str, mode: QuizMode) -> Optional[Session]:
        return self.get_by_id(make_session_id(set_id, mode))

    def get_by_id(self, session_id: str) -> Optional[Session]:
        with self.db.read() as conn:
            return _fetch(conn, session_id)

    def get_or_create(self, set_id: str, mode: QuizMode, item_count: int) -> Session:
        """Returns the session for the pair, creating or resizing it as needed.

        A change in the set's size invalidates both the progress and the
        saved order.
        """
        session_id = make_session_id(set_id, mode)
        with self.db.transaction() as conn:
            existing = _fetch(conn, session_id)
            if existing is None:
                session = Session(
                    session_id=session_id, set_id=set_id, total_questions=item_count
                )
                logger.info(f"Created quiz session {session_id} ({item_count} questions)")
            elif existing.total_questions != item_count:
                logger.info(
                    f"Set {set_id} changed size ({existing.total_questions} -> {item_count}); "
                    f"resetting {session_id}"
                )
                delete_order(conn, session_id)
                session = _zeroed(existing, total_questions=item_count)
            else:
                session = existing.model_copy(update={"last_accessed": datetime.now()})
            _write(conn, session)
        return session

    def _update(self, session: Session, mutate) -> Session:
        with self.db.transaction() as conn:
            current = _fetch(conn, session.session_id)
            if current is None:
                raise NotFound(f"No quiz session {session.session_id}")
            updated = mutate(current)
            _write(conn, updated)
        return updated

    def record_answer(
        self, session: Session, correct: Optional[bool], item_id: Optional[str] = None
    ) -> Session:
        """Applies one answer and, when ``item_id`` is given, marks the item answered.

        ``correct=None`` is an ungraded answer: counters and score stay as
        they are.
        """

        def mutate(current: Session) -> Session:
            changes = {"last_accessed": datetime.now()}
            if item_id is not None and item_id not in current.answered_item_ids:
                changes["answered_item_ids"] = current.answered_item_ids + [item_id]
            if correct is None:
                return current.model_copy(update=changes)
            graded = current.correct_count + current.incorrect_count
            if graded >= current.total_questions:
                logger.warning(f"{current.session_id} already graded every question")
                return current.model_copy(update=changes)
            if correct:
                changes["correct_count"] = current.correct_count + 1
                changes["score"] = current.score + self.points_per_correct
            else:
                changes["incorrect_count"] = current.incorrect_count + 1
            return current.model_copy(update=changes)

        return self._update(session, mutate)

    def mark_answered(self, session: Session, item_id: str) -> Session:
        def mutate(current: Session) -> Session:
            if item_id in current.answered_item_ids:
                return current
            return current.model_copy(
                update={"answered_item_ids": current.answered_item_ids + [item_id]}
            )

        return self._update(session, mutate)

    def advance(self, session: Session) -> Session:
        def mutate(current: Session) -> Session:
            if current.current_index >= current.total_questions:
                return current
            return current.model_copy(
                update={
                    "current_index": current.current_index + 1,
                    "last_accessed": datetime.now(),
                }
            )

        return self._update(session, mutate)

    def reset_progress(self, session: Session) -> Session:
        """Zeroes the counters and drops the saved order in one write."""
        with self.db.transaction() as conn:
            current = _fetch(conn, session.session_id)
            if current is None:
                raise NotFound(f"No quiz session {session.session_id}")
            delete_order(conn, session.session_id)
            updated = _zeroed(current)
            _write(conn, updated)
        logger.info(f"Reset progress of {session.session_id}")
        return updated

    def clear(self, set_id: str, mode: QuizMode):
        session_id = make_session_id(set_id, mode)
        with self.db.transaction() as conn:
            delete_order(conn, session_id)
            cursor = conn.execute("DELETE FROM sessions WHERE session_id = ?", (session_id,))
        if cursor.rowcount:
            logger.info(f"Deleted quiz session {session_id}")
