import json
import logging
import sqlite3
from typing import Dict, List, Optional, Sequence

from .database import Database
from .errors import StaleOrder
from .models import Item, OrderRecord

logger = logging.getLogger(__name__)


def _set_order_flag(conn: sqlite3.Connection, session_id: str, has_order: bool):
    conn.execute(
        "UPDATE sessions SET has_order_saved = ? WHERE session_id = ?",
        (int(has_order), session_id),
    )


def delete_order(conn: sqlite3.Connection, session_id: str) -> bool:
    """Drops the order row and the session's flag inside an open transaction."""
    cursor = conn.execute("DELETE FROM orders WHERE session_id = ?", (session_id,))
    _set_order_flag(conn, session_id, False)
    return cursor.rowcount > 0


class OrderStore:
    """Persists the shuffled item order of each quiz session."""

    def __init__(self, db: Database):
        self.db = db

    def save(self, session_id: str, ordered_item_ids: Sequence[str]):
        ids = list(ordered_item_ids)
        with self.db.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO orders (session_id, ordered_item_ids) VALUES (?, ?)",
                (session_id, json.dumps(ids)),
            )
            _set_order_flag(conn, session_id, True)
        logger.info(f"Saved question order for {session_id} ({len(ids)} items)")

    def get(self, session_id: str) -> Optional[OrderRecord]:
        with self.db.read() as conn:
            row = conn.execute(
                "SELECT ordered_item_ids FROM orders WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if row is None:
            return None
        return OrderRecord(
            session_id=session_id, ordered_item_ids=json.loads(row["ordered_item_ids"])
        )

    def load(self, session_id: str, available_items: Sequence[Item]) -> Optional[List[Item]]:
        """Rebuilds the saved order against the items currently in the set.

        Returns None when nothing usable is stored. A missing, empty or stale
        order is discarded, and the session's flag cleared, so that the caller
        shuffles a new one.
        """
        record = self.get(session_id)
        if record is None or not record.ordered_item_ids:
            self.clear(session_id)
            return None

        try:
            ordered = self._resolve(session_id, record, available_items)
        except StaleOrder as e:
            logger.warning(f"Discarding order for {session_id}: {e}")
            self.clear(session_id)
            return None

        logger.info(f"Loaded question order for {session_id} with {len(ordered)} items")
        return ordered

    def _resolve(
        self, session_id: str, record: OrderRecord, available_items: Sequence[Item]
    ) -> List[Item]:
        items_by_id: Dict[str, Item] = {item.id: item for item in available_items}
        ordered = []
        for item_id in record.ordered_item_ids:
            item = items_by_id.get(item_id)
            if item is None:
                raise StaleOrder(f"item {item_id} is no longer in the set")
            ordered.append(item)

        with self.db.read() as conn:
            row = conn.execute(
                "SELECT total_questions FROM sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if row is not None and len(ordered) != row["total_questions"]:
            raise StaleOrder(
                f"order has {len(ordered)} items, session expects {row['total_questions']}"
            )
        return ordered

    def clear(self, session_id: str):
        with self.db.transaction() as conn:
            removed = delete_order(conn, session_id)
        if removed:
            logger.info(f"Cleared question order for {session_id}")
