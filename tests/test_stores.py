"""SQLite and in-memory stores for wardrobe items and saved outfits."""

import sqlite3
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.errors import PersistenceError  # noqa: E402
from models.clothing_item import ClothingItem  # noqa: E402
from models.outfit import Outfit  # noqa: E402
from models.taxonomy import ClothingCategory, Occasion, Season  # noqa: E402
from tools.inventory_provider import WardrobeInventory  # noqa: E402
from tools.outfit_store import InMemoryOutfitStore, SQLiteOutfitStore  # noqa: E402
from tools.wardrobe_store import SQLiteWardrobeStore  # noqa: E402


def _items():
    return [
        ClothingItem(item_id="shirt", name="Oxford Shirt", category="tops", color="navy",
                     seasons=["Autumn", "winter"], occasions=["work"], tags=["Classic"],
                     created_at="2024-01-01T09:00:00"),
        ClothingItem(item_id="chinos", name="Chinos", category="pants", color="#c3b091",
                     seasons=["spring"], occasions=["casual", "work"], price=59.5,
                     created_at="2024-01-02T09:00:00"),
        ClothingItem(item_id="loafers", name="Loafers", category="shoes", color="brown",
                     seasons=["fall"], occasions=["work"], is_favorite=True,
                     created_at="2024-01-03T09:00:00"),
    ]


def test_wardrobe_store_round_trips_items(tmp_path) -> None:
    store = SQLiteWardrobeStore(tmp_path / "nested" / "wardrobe.db")
    for item in _items():
        store.create_item("user-1", item)

    loaded = store.get_item("user-1", "shirt")

    assert loaded is not None
    assert loaded.color == "#000080"
    assert loaded.seasons == [Season.FALL, Season.WINTER]
    assert loaded.occasions == [Occasion.WORK]
    assert loaded.tags == ["classic"]
    assert store.get_item("user-2", "shirt") is None
    assert [item.item_id for item in store.list_items_for_user("user-1")] == ["shirt", "chinos", "loafers"]
    assert store.get_item("user-1", "chinos").category is ClothingCategory.BOTTOMS
    assert store.get_item("user-1", "loafers").is_favorite is True


@pytest.mark.asyncio
async def test_wardrobe_inventory_reads_one_user(tmp_path) -> None:
    store = SQLiteWardrobeStore(tmp_path / "wardrobe.db")
    store.create_item("user-1", _items()[0])
    store.create_item("user-2", _items()[1])

    items = await WardrobeInventory(store, user_id="user-2").list_items()

    assert [item.item_id for item in items] == ["chinos"]


@pytest.mark.asyncio
async def test_sqlite_outfit_store_save_load_and_toggle(tmp_path) -> None:
    store = SQLiteOutfitStore(tmp_path / "outfits.db", user_id="user-1")
    outfit = Outfit.from_generated(_items(), "Office Staple")

    assert await store.has_manual_outfits() is False
    saved = await store.save_outfit(outfit)
    assert saved.ok
    assert saved.outfit_id == outfit.outfit_id

    loaded = await store.load_manual_outfits()
    assert len(loaded) == 1
    assert loaded[0].name == "Office Staple"
    assert loaded[0].item_ids == ["shirt", "chinos", "loafers"]
    assert loaded[0].occasions == [Occasion.WORK]
    assert loaded[0].items[0].color == "#000080"
    assert await store.has_manual_outfits() is True

    toggled = await store.toggle_favorite(outfit.outfit_id)
    assert toggled.ok and toggled.is_favorite is True
    assert (await store.load_manual_outfits())[0].is_favorite is True
    assert (await store.toggle_favorite(outfit.outfit_id)).is_favorite is False


@pytest.mark.asyncio
async def test_sqlite_outfit_store_isolates_users(tmp_path) -> None:
    path = tmp_path / "outfits.db"
    await SQLiteOutfitStore(path, user_id="user-1").save_outfit(Outfit.from_generated(_items()[:2], "Mine"))

    assert await SQLiteOutfitStore(path, user_id="user-2").load_manual_outfits() == []


@pytest.mark.asyncio
async def test_toggle_unknown_outfit_is_reported(tmp_path) -> None:
    store = SQLiteOutfitStore(tmp_path / "outfits.db")

    result = await store.toggle_favorite("missing")

    assert not result.ok
    assert "outfit missing not found" in result.error


def test_sqlite_outfit_store_raises_on_corrupt_rows(tmp_path) -> None:
    path = tmp_path / "outfits.db"
    store = SQLiteOutfitStore(path)
    with sqlite3.connect(path) as conn:
        conn.execute(
            "INSERT INTO outfits (user_id, outfit_id, name, items, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
            ("default", "broken", "Broken", "[]", "not-a-date", "not-a-date"),
        )

    with pytest.raises(PersistenceError) as excinfo:
        store.list_outfits()

    assert excinfo.value.operation == "load_outfits"


@pytest.mark.asyncio
async def test_in_memory_store_round_trip_and_failures() -> None:
    outfit = Outfit.from_generated(_items()[:2], "Weekend")
    store = InMemoryOutfitStore()

    assert await store.has_manual_outfits() is False
    assert (await store.save_outfit(outfit)).outfit_id == outfit.outfit_id
    assert (await store.toggle_favorite(outfit.outfit_id)).is_favorite is True
    assert (await store.load_manual_outfits())[0].is_favorite is True
    assert outfit.is_favorite is False

    broken = InMemoryOutfitStore([outfit], fail_writes=True)
    assert not (await broken.save_outfit(outfit)).ok
    failed_toggle = await broken.toggle_favorite(outfit.outfit_id)
    assert not failed_toggle.ok
    assert failed_toggle.error == "toggle_favorite failed: store is unavailable"
    assert await broken.has_manual_outfits() is True


def test_wardrobe_listing_skips_unreadable_rows(tmp_path) -> None:
    path = tmp_path / "wardrobe.db"
    store = SQLiteWardrobeStore(path)
    store.create_item("user-1", _items()[0])
    with sqlite3.connect(path) as conn:
        conn.execute(
            "INSERT INTO clothing_items (user_id, item_id, name, category) VALUES (?, ?, ?, ?)",
            ("user-1", "cape", "Cape", "capes"),
        )

    assert [item.item_id for item in store.list_items_for_user("user-1")] == ["shirt"]


def test_stores_close_every_connection(tmp_path, monkeypatch) -> None:
    opened = []
    real_connect = sqlite3.connect

    def tracking_connect(*args, **kwargs):
        conn = real_connect(*args, **kwargs)
        opened.append(conn)
        return conn

    monkeypatch.setattr(sqlite3, "connect", tracking_connect)
    wardrobe = SQLiteWardrobeStore(tmp_path / "wardrobe.db")
    wardrobe.create_item("user-1", _items()[0])
    wardrobe.list_items_for_user("user-1")
    outfits = SQLiteOutfitStore(tmp_path / "outfits.db")
    outfits.write_outfit(Outfit.from_generated(_items(), "Closed"))
    outfits.list_outfits()

    assert len(opened) >= 5
    for conn in opened:
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")
