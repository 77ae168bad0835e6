"""Persistence for saved outfits.

Stores raise :class:`PersistenceError` internally; the async
:class:`OutfitPersistence` surface converts those into result objects so
callers can report failures without losing in-memory state.
"""
from __future__ import annotations

import abc
import asyncio
import contextlib
import json
import logging
import sqlite3
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from logic.errors import PersistenceError
from models.clothing_item import ClothingItem
from models.outfit import Outfit

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveResult:
    outfit_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class FavoriteToggleResult:
    is_favorite: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class OutfitPersistence(abc.ABC):
    """Async interface the orchestrator uses for saved outfits."""

    @abc.abstractmethod
    async def load_manual_outfits(self) -> List[Outfit]:
        """Return every saved outfit; raises :class:`PersistenceError` on failure."""

    @abc.abstractmethod
    async def save_outfit(self, outfit: Outfit) -> SaveResult:
        ...

    @abc.abstractmethod
    async def toggle_favorite(self, outfit_id: str) -> FavoriteToggleResult:
        ...

    @abc.abstractmethod
    async def has_manual_outfits(self) -> bool:
        ...


def _save_failed(outfit: Outfit, exc: PersistenceError) -> SaveResult:
    LOGGER.warning(
        "Outfit save failed",
        extra={"outfit_id": outfit.outfit_id, "operation": exc.operation, "error": str(exc)},
    )
    return SaveResult(error=str(exc))


def _toggle_failed(outfit_id: str, exc: PersistenceError) -> FavoriteToggleResult:
    LOGGER.warning(
        "Favorite toggle failed",
        extra={"outfit_id": outfit_id, "operation": exc.operation, "error": str(exc)},
    )
    return FavoriteToggleResult(error=str(exc))


class SQLiteOutfitStore(OutfitPersistence):
    """Local SQLite-backed store for one user's saved outfits."""

    def __init__(self, database_path: str | Path = "data/outfits.db", user_id: str = "default") -> None:
        self.database_path = Path(database_path)
        self.user_id = user_id
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
                CREATE TABLE IF NOT EXISTS outfits (
                    user_id TEXT NOT NULL,
                    outfit_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    items TEXT,
                    is_favorite INTEGER DEFAULT 0,
                    times_worn INTEGER DEFAULT 0,
                    last_worn TEXT,
                    seasons TEXT,
                    occasions TEXT,
                    tags TEXT,
                    source TEXT,
                    created_at TEXT,
                    updated_at TEXT,
                    PRIMARY KEY (user_id, outfit_id)
                );
                """
            )

    def _row_to_outfit(self, row: sqlite3.Row) -> Outfit:
        items = [ClothingItem(**payload) for payload in json.loads(row["items"] or "[]")]
        return Outfit(
            outfit_id=row["outfit_id"],
            name=row["name"],
            items=items,
            is_favorite=bool(row["is_favorite"]),
            times_worn=row["times_worn"] or 0,
            last_worn=datetime.fromisoformat(row["last_worn"]) if row["last_worn"] else None,
            seasons=json.loads(row["seasons"] or "[]"),
            occasions=json.loads(row["occasions"] or "[]"),
            tags=json.loads(row["tags"] or "[]"),
            source=row["source"] or "manual",
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def list_outfits(self) -> List[Outfit]:
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "SELECT * FROM outfits WHERE user_id = ? ORDER BY created_at, outfit_id",
                    (self.user_id,),
                )
                return [self._row_to_outfit(row) for row in cursor.fetchall()]
        except (sqlite3.Error, ValueError) as exc:
            raise PersistenceError("load_outfits", str(exc)) from exc

    def write_outfit(self, outfit: Outfit) -> str:
        payload = outfit.to_dict()
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO outfits (
                        user_id, outfit_id, name, items, is_favorite, times_worn, last_worn,
                        seasons, occasions, tags, source, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        self.user_id,
                        outfit.outfit_id,
                        outfit.name,
                        json.dumps(payload["items"]),
                        int(outfit.is_favorite),
                        outfit.times_worn,
                        payload["last_worn"],
                        json.dumps(payload["seasons"]),
                        json.dumps(payload["occasions"]),
                        json.dumps(payload["tags"]),
                        outfit.source,
                        payload["created_at"],
                        payload["updated_at"],
                    ),
                )
        except sqlite3.Error as exc:
            raise PersistenceError("save_outfit", str(exc)) from exc
        return outfit.outfit_id

    def flip_favorite(self, outfit_id: str) -> bool:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT is_favorite FROM outfits WHERE user_id = ? AND outfit_id = ?",
                    (self.user_id, outfit_id),
                ).fetchone()
                if row is None:
                    raise PersistenceError("toggle_favorite", f"outfit {outfit_id} not found")
                new_value = not bool(row["is_favorite"])
                conn.execute(
                    "UPDATE outfits SET is_favorite = ?, updated_at = ? WHERE user_id = ? AND outfit_id = ?",
                    (int(new_value), datetime.now().isoformat(), self.user_id, outfit_id),
                )
        except sqlite3.Error as exc:
            raise PersistenceError("toggle_favorite", str(exc)) from exc
        return new_value

    def count_outfits(self) -> int:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT COUNT(*) FROM outfits WHERE user_id = ?", (self.user_id,)).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError("count_outfits", str(exc)) from exc
        return int(row[0])

    async def load_manual_outfits(self) -> List[Outfit]:
        outfits = await asyncio.to_thread(self.list_outfits)
        return [outfit for outfit in outfits if outfit.source == "manual"]

    async def save_outfit(self, outfit: Outfit) -> SaveResult:
        try:
            outfit_id = await asyncio.to_thread(self.write_outfit, outfit)
        except PersistenceError as exc:
            return _save_failed(outfit, exc)
        return SaveResult(outfit_id=outfit_id)

    async def toggle_favorite(self, outfit_id: str) -> FavoriteToggleResult:
        try:
            is_favorite = await asyncio.to_thread(self.flip_favorite, outfit_id)
        except PersistenceError as exc:
            return _toggle_failed(outfit_id, exc)
        return FavoriteToggleResult(is_favorite=is_favorite)

    async def has_manual_outfits(self) -> bool:
        return await asyncio.to_thread(self.count_outfits) > 0


class InMemoryOutfitStore(OutfitPersistence):
    """Dictionary-backed store; ``fail_writes`` simulates an unavailable backend."""

    def __init__(self, outfits: Iterable[Outfit] = (), fail_writes: bool = False) -> None:
        self._outfits: Dict[str, Outfit] = {outfit.outfit_id: outfit for outfit in outfits}
        self.fail_writes = fail_writes

    def _check_writable(self, operation: str) -> None:
        if self.fail_writes:
            raise PersistenceError(operation, "store is unavailable")

    async def load_manual_outfits(self) -> List[Outfit]:
        return [outfit for outfit in self._outfits.values() if outfit.source == "manual"]

    async def save_outfit(self, outfit: Outfit) -> SaveResult:
        try:
            self._check_writable("save_outfit")
        except PersistenceError as exc:
            return _save_failed(outfit, exc)
        self._outfits[outfit.outfit_id] = outfit
        return SaveResult(outfit_id=outfit.outfit_id)

    async def toggle_favorite(self, outfit_id: str) -> FavoriteToggleResult:
        try:
            self._check_writable("toggle_favorite")
            current = self._outfits.get(outfit_id)
            if current is None:
                raise PersistenceError("toggle_favorite", f"outfit {outfit_id} not found")
        except PersistenceError as exc:
            return _toggle_failed(outfit_id, exc)
        updated = replace(current, is_favorite=not current.is_favorite, updated_at=datetime.now())
        self._outfits[outfit_id] = updated
        return FavoriteToggleResult(is_favorite=updated.is_favorite)

    async def has_manual_outfits(self) -> bool:
        return any(outfit.source == "manual" for outfit in self._outfits.values())


__all__ = [
    "SaveResult",
    "FavoriteToggleResult",
    "OutfitPersistence",
    "SQLiteOutfitStore",
    "InMemoryOutfitStore",
]
