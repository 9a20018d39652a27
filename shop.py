# shop.py: catalog queries and purchases against the pet's balances.

from datetime import datetime
from typing import List

import actions
from catalog import REVIVAL_ITEM_ID, SHOP_ITEMS, get_item, meets_requirement
from models import ActionResult, Currency, ErrorCode, InventoryEntry, Pet, ShopItem


def list_catalog() -> List[ShopItem]:
    return list(SHOP_ITEMS)


def is_unlocked(pet: Pet, item: ShopItem) -> bool:
    return meets_requirement(item.unlock_requirement, pet.level, pet.total_books_read, pet.badges)


def list_unlocked(pet: Pet) -> List[ShopItem]:
    return [item for item in SHOP_ITEMS if is_unlocked(pet, item)]


def balance(pet: Pet, currency: Currency) -> int:
    return pet.coins if currency == Currency.COINS else pet.points


def buy(pet: Pet, item_id: str) -> ActionResult:
    """
    Buys one unit of an item. Order of checks: existence, lifecycle, unlock, funds.
    A dead pet's owner may still buy the revival item.
    """
    item = get_item(item_id)
    if item is None:
        return ActionResult.fail(ErrorCode.ITEM_NOT_FOUND, pet)
    if not pet.is_alive and item.id != REVIVAL_ITEM_ID:
        return ActionResult.fail(ErrorCode.PET_MUST_BE_ALIVE, pet)
    if not is_unlocked(pet, item):
        return ActionResult.fail(ErrorCode.ITEM_LOCKED, pet)
    if balance(pet, item.currency) < item.price:
        return ActionResult.fail(ErrorCode.INSUFFICIENT_FUNDS, pet)

    pet = pet.model_copy(deep=True)
    if item.currency == Currency.COINS:
        pet.coins -= item.price
    else:
        pet.points -= item.price

    entry = pet.inventory.get(item.id)
    if entry is None:
        pet.inventory[item.id] = InventoryEntry(item_id=item.id, quantity=1, item=item)
    else:
        entry.quantity += 1
    return ActionResult.ok(pet)


def use(pet: Pet, item_id: str, now: datetime) -> ActionResult:
    return actions.use_item(pet, item_id, now)
