"""Simple entrypoint to run the outfit recommendation engine locally."""

import asyncio

from engine_app.app import OutfitEngineApp
from engine_app.config import EngineConfig
from models.clothing_item import from_raw_metadata
from tools.inventory_provider import MockInventoryProvider
from tools.outfit_store import InMemoryOutfitStore

SAMPLE_WARDROBE = [
    {"item_id": "top-1", "name": "Oxford Shirt", "category": "tops", "color": "#4a6fa5",
     "seasons": ["spring", "fall"], "occasions": ["work", "casual"], "tags": ["classic"]},
    {"item_id": "top-2", "name": "Striped Tee", "category": "tops", "color": "white",
     "seasons": ["summer", "spring"], "occasions": ["casual"], "tags": ["casual"]},
    {"item_id": "bottom-1", "name": "Dark Jeans", "category": "bottoms", "color": "#1c2541",
     "seasons": ["spring", "fall", "winter"], "occasions": ["casual", "work"], "tags": ["classic"]},
    {"item_id": "bottom-2", "name": "Chinos", "category": "bottoms", "color": "#c3b091",
     "seasons": ["spring", "summer"], "occasions": ["work"], "tags": ["business"]},
    {"item_id": "dress-1", "name": "Wrap Dress", "category": "dresses", "color": "#8b0000",
     "seasons": ["summer"], "occasions": ["party", "date"], "tags": ["trendy"]},
    {"item_id": "shoes-1", "name": "White Sneakers", "category": "shoes", "color": "white",
     "seasons": ["spring", "summer", "fall"], "occasions": ["casual"], "tags": ["casual"]},
    {"item_id": "shoes-2", "name": "Loafers", "category": "shoes", "color": "brown",
     "seasons": ["spring", "fall"], "occasions": ["work"], "tags": ["classic"]},
    {"item_id": "acc-1", "name": "Leather Belt", "category": "accessories", "color": "brown",
     "seasons": ["spring", "summer", "fall", "winter"], "occasions": ["work", "casual"]},
]


async def run_demo() -> None:
    inventory = MockInventoryProvider(from_raw_metadata(entry) for entry in SAMPLE_WARDROBE)
    app = OutfitEngineApp(config=EngineConfig(), inventory=inventory, persistence=InMemoryOutfitStore())
    await app.start_session()

    response = await app.recommend(min_score=0.3)
    print(f"{len(response['outfits'])} suggestions")
    for outfit in response["outfits"][:5]:
        names = ", ".join(item["name"] for item in outfit["items"])
        print(f"  {outfit['score']['total']:.2f}  {names}")

    saved = await app.save_current()
    print(f"Saved current suggestion as {saved}")
    await app.shutdown()


def main() -> None:
    asyncio.run(run_demo())


if __name__ == "__main__":
    main()
