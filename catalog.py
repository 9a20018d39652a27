# catalog.py: static shop and minigame catalogs.
# Not editable at runtime; the minigame manager keeps its own copy for admin toggles.

from typing import Dict, List, Optional

from models import (
    Currency, ItemCategory, ItemEffect, Minigame, Rarity, ShopItem, UnlockRequirement,
)

REVIVAL_ITEM_ID = "phoenix_feather"


def _item(id, name, category, rarity, price, effect, description="",
          currency=Currency.POINTS, unlock=None) -> ShopItem:
    return ShopItem(
        id=id, name=name, description=description, category=category, rarity=rarity,
        price=price, currency=currency, effect=ItemEffect(**effect),
        unlock_requirement=UnlockRequirement(**unlock) if unlock else None,
    )


SHOP_ITEMS: List[ShopItem] = [
    # --- Food ---
    _item("book_biscuit", "Book Biscuit", ItemCategory.FOOD, Rarity.COMMON, 5,
          {"hunger": 15, "happiness": 2}, "A crunchy snack shaped like a tiny paperback."),
    _item("berry_bowl", "Berry Bowl", ItemCategory.FOOD, Rarity.COMMON, 8,
          {"hunger": 25, "health": 5}, "Fresh berries, good for body and mind."),
    _item("honey_toast", "Honey Toast", ItemCategory.FOOD, Rarity.RARE, 15,
          {"hunger": 35, "happiness": 10}, "Warm toast for long reading nights.",
          unlock={"level": 5}),
    _item("feast_platter", "Feast Platter", ItemCategory.FOOD, Rarity.EPIC, 30,
          {"hunger": 60, "happiness": 20, "health": 10}, "A celebration meal.",
          unlock={"level": 10}),

    # --- Toys ---
    _item("yarn_ball", "Yarn Ball", ItemCategory.TOY, Rarity.COMMON, 6,
          {"happiness": 15, "energy": -5}),
    _item("puzzle_cube", "Puzzle Cube", ItemCategory.TOY, Rarity.RARE, 12,
          {"happiness": 25, "energy": -10, "experience": 10}, unlock={"level": 3}),
    _item("story_kite", "Story Kite", ItemCategory.TOY, Rarity.EPIC, 25,
          {"happiness": 40, "energy": -15, "experience": 20},
          "A kite printed with pages of old fairy tales.", unlock={"books": 5}),

    # --- Medicine ---
    _item("herbal_tea", "Herbal Tea", ItemCategory.MEDICINE, Rarity.COMMON, 10,
          {"sickness": -20, "health": 10}),
    _item("vitamin_drops", "Vitamin Drops", ItemCategory.MEDICINE, Rarity.RARE, 18,
          {"sickness": -30, "health": 25}, unlock={"level": 4}),
    _item("elixir", "Elixir of Chapters", ItemCategory.MEDICINE, Rarity.EPIC, 35,
          {"sickness": -60, "health": 50}, unlock={"level": 12}),

    # --- Care / decoration ---
    _item("soap_bar", "Soap Bar", ItemCategory.DECORATION, Rarity.COMMON, 4,
          {"cleanliness": 30}),
    _item("bubble_bath", "Bubble Bath", ItemCategory.DECORATION, Rarity.RARE, 10,
          {"cleanliness": 60, "happiness": 10}, unlock={"level": 3}),
    _item("cozy_blanket", "Cozy Blanket", ItemCategory.DECORATION, Rarity.RARE, 30,
          {"energy": 20, "happiness": 10}, "Bought with minigame coins.",
          currency=Currency.COINS),
    _item("reading_lamp", "Reading Lamp", ItemCategory.DECORATION, Rarity.EPIC, 60,
          {"happiness": 25, "experience": 15}, "Bought with minigame coins.",
          currency=Currency.COINS, unlock={"level": 5}),

    # --- Special ---
    _item("energy_tonic", "Energy Tonic", ItemCategory.SPECIAL, Rarity.RARE, 15,
          {"energy": 50}),
    _item("wisdom_scroll", "Wisdom Scroll", ItemCategory.SPECIAL, Rarity.LEGENDARY, 75,
          {"experience": 150}, unlock={"level": 15, "badges": ["book-lover"]}),
    _item(REVIVAL_ITEM_ID, "Phoenix Feather", ItemCategory.SPECIAL, Rarity.LEGENDARY, 100,
          {"happiness": 20}, "Brings a fallen pet back to life."),
]

SHOP_INDEX: Dict[str, ShopItem] = {item.id: item for item in SHOP_ITEMS}


def get_item(item_id: str) -> Optional[ShopItem]:
    return SHOP_INDEX.get(item_id)


MINIGAMES: List[Minigame] = [
    Minigame(
        id="word_puzzle", name="Word Puzzle",
        description="Solve word puzzles to earn coins",
        difficulty="easy", base_reward=10, bonus_multiplier=1.5, max_plays_per_day=5,
        game_url="/minigames/word_puzzle.html",
    ),
    Minigame(
        id="genre_sort", name="Genre Sorting",
        description="Sort books into correct genres quickly",
        difficulty="easy", base_reward=12, bonus_multiplier=1.3, max_plays_per_day=6,
        unlock_requirement=UnlockRequirement(level=3),
    ),
    Minigame(
        id="memory_match", name="Memory Match",
        description="Match pairs of book covers",
        difficulty="medium", base_reward=15, bonus_multiplier=2.0, max_plays_per_day=3,
        unlock_requirement=UnlockRequirement(level=5),
    ),
    Minigame(
        id="book_trivia", name="Book Trivia",
        description="Answer questions about famous books",
        difficulty="medium", base_reward=20, bonus_multiplier=1.8, max_plays_per_day=4,
        unlock_requirement=UnlockRequirement(level=8),
    ),
    Minigame(
        id="speed_reading", name="Speed Reading Challenge",
        description="Read passages quickly and answer questions",
        difficulty="hard", base_reward=25, bonus_multiplier=2.5, max_plays_per_day=2,
        unlock_requirement=UnlockRequirement(level=10, books=5),
    ),
]


def meets_requirement(requirement: Optional[UnlockRequirement], level: int,
                      books: int, badges: List[str]) -> bool:
    """Shared gate for shop items and minigames."""
    if requirement is None:
        return True
    if requirement.level is not None and level < requirement.level:
        return False
    if requirement.books is not None and books < requirement.books:
        return False
    return all(badge in badges for badge in requirement.badges)
