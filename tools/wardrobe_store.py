"""Wardrobe storage abstractions and SQLite implementation."""
from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from logic.errors import PersistenceError
from models.clothing_item import ClothingItem

LOGGER = logging.getLogger(__name__)

_COLUMNS = (
    "user_id",
    "item_id",
    "name",
    "category",
    "color",
    "seasons",
    "occasions",
    "tags",
    "subcategory",
    "brand",
    "price",
    "is_favorite",
    "times_worn",
    "last_worn",
    "created_at",
)


class WardrobeStore:
    """Persistence interface for clothing items."""

    def create_item(self, user_id: str, item: ClothingItem) -> ClothingItem:
        raise NotImplementedError

    def get_item(self, user_id: str, item_id: str) -> Optional[ClothingItem]:
        raise NotImplementedError

    def list_items_for_user(self, user_id: str) -> List[ClothingItem]:
        raise NotImplementedError


class SQLiteWardrobeStore(WardrobeStore):
    """Local SQLite-backed store for clothing items.

    Database failures surface as :class:`PersistenceError`. Rows that no
    longer validate (for example a category dropped from the taxonomy) are
    skipped when listing so one bad row cannot block a recommendation pass.
    """

    def __init__(self, database_path: str | Path = "data/wardrobe.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    @contextlib.contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection that commits on success and is always closed."""

        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS clothing_items (
                    user_id TEXT NOT NULL,
                    item_id TEXT NOT NULL,
                    name TEXT,
                    category TEXT,
                    color TEXT,
                    seasons TEXT,
                    occasions TEXT,
                    tags TEXT,
                    subcategory TEXT,
                    brand TEXT,
                    price REAL,
                    is_favorite INTEGER DEFAULT 0,
                    times_worn INTEGER DEFAULT 0,
                    last_worn TEXT,
                    created_at TEXT,
                    PRIMARY KEY (user_id, item_id)
                );
                """
            )

    def _execute(self, operation: str, sql: str, params: Sequence[object]) -> List[sqlite3.Row]:
        try:
            with self._connect() as conn:
                return conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(operation, str(exc)) from exc

    @staticmethod
    def _serialise_list(values: Optional[List[object]]) -> str:
        return json.dumps([getattr(value, "value", value) for value in values or []])

    @staticmethod
    def _deserialise_list(raw: str) -> List[object]:
        return json.loads(raw) if raw else []

    def _item_params(self, user_id: str, item: ClothingItem) -> tuple:
        return (
            user_id,
            item.item_id,
            item.name,
            item.category.value,
            item.color,
            self._serialise_list(item.seasons),
            self._serialise_list(item.occasions),
            self._serialise_list(item.tags),
            item.subcategory,
            item.brand,
            item.price,
            int(item.is_favorite),
            item.times_worn,
            item.last_worn.isoformat() if item.last_worn else None,
            item.created_at.isoformat() if item.created_at else None,
        )

    def _row_to_item(self, row: sqlite3.Row) -> ClothingItem:
        return ClothingItem(
            item_id=row["item_id"],
            name=row["name"],
            category=row["category"],
            color=row["color"] or "",
            seasons=self._deserialise_list(row["seasons"]),
            occasions=self._deserialise_list(row["occasions"]),
            tags=self._deserialise_list(row["tags"]),
            subcategory=row["subcategory"],
            brand=row["brand"],
            price=row["price"],
            is_favorite=bool(row["is_favorite"]),
            times_worn=row["times_worn"] or 0,
            last_worn=row["last_worn"],
            created_at=row["created_at"],
        )

    def create_item(self, user_id: str, item: ClothingItem) -> ClothingItem:
        placeholders = ", ".join("?" for _ in _COLUMNS)
        self._execute(
            "create_item",
            f"INSERT OR REPLACE INTO clothing_items ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
            self._item_params(user_id, item),
        )
        return item

    def get_item(self, user_id: str, item_id: str) -> Optional[ClothingItem]:
        rows = self._execute(
            "get_item",
            "SELECT * FROM clothing_items WHERE user_id = ? AND item_id = ?",
            (user_id, item_id),
        )
        return self._row_to_item(rows[0]) if rows else None

    def list_items_for_user(self, user_id: str) -> List[ClothingItem]:
        rows = self._execute(
            "list_items",
            "SELECT * FROM clothing_items WHERE user_id = ? ORDER BY created_at, item_id",
            (user_id,),
        )
        items: List[ClothingItem] = []
        for row in rows:
            try:
                items.append(self._row_to_item(row))
            except (ValueError, TypeError) as exc:
                LOGGER.warning("Skipping unreadable wardrobe row", extra={"item_id": row["item_id"], "error": str(exc)})
        return items


__all__ = ["WardrobeStore", "SQLiteWardrobeStore"]
