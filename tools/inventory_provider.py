"""Async access to a user's clothing inventory."""

from __future__ import annotations

import abc
import asyncio
import logging
from typing import Iterable, List

from models.clothing_item import ClothingItem
from tools.wardrobe_store import WardrobeStore

LOGGER = logging.getLogger(__name__)


class InventoryProvider(abc.ABC):
    """Source of the items a recommendation pass draws from."""

    @abc.abstractmethod
    async def list_items(self) -> List[ClothingItem]:
        """Return the current snapshot of the wardrobe."""


class WardrobeInventory(InventoryProvider):
    """Inventory backed by a :class:`WardrobeStore` for one user."""

    def __init__(self, store: WardrobeStore, user_id: str) -> None:
        self.store = store
        self.user_id = user_id

    async def list_items(self) -> List[ClothingItem]:
        items = await asyncio.to_thread(self.store.list_items_for_user, self.user_id)
        LOGGER.debug("Loaded %d wardrobe items", len(items), extra={"user_id": self.user_id})
        return items


class MockInventoryProvider(InventoryProvider):
    """In-memory inventory for demos and tests."""

    def __init__(self, items: Iterable[ClothingItem] = ()) -> None:
        self.items: List[ClothingItem] = list(items)
        self.calls = 0

    async def list_items(self) -> List[ClothingItem]:
        self.calls += 1
        return list(self.items)


__all__ = ["InventoryProvider", "WardrobeInventory", "MockInventoryProvider"]
