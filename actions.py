# actions.py: user actions applied to a pet snapshot.
#
# Every function takes the current snapshot and returns an ActionResult with a
# new snapshot. Checks run before anything is copied, so a failed action never
# leaves a half-applied change behind.

import logging
from dataclasses import dataclass
from datetime import date, datetime

from catalog import REVIVAL_ITEM_ID
from decay import clamp
from leveling import grant_experience
from models import MAX_READING_MINUTES, ActionResult, ErrorCode, ItemEffect, Pet

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 32

# Book-count milestones and the badge they award.
BOOK_BADGES = {1: "first-book", 10: "book-lover", 50: "bookworm"}


@dataclass(frozen=True)
class CareRules:
    feed_cost: int = 3
    feed_hunger: int = 20
    feed_happiness: int = 5
    feed_experience: int = 5

    play_cost: int = 5
    play_happiness: int = 20
    play_energy: int = -15
    play_experience: int = 10

    sleep_energy: int = 40
    sleep_health: int = 10

    minutes_per_xp: int = 5
    minutes_per_point: int = 10
    minutes_per_happiness: int = 10
    book_experience: int = 50
    book_points: int = 20
    book_happiness: int = 25

    revival_health: int = 50
    revival_hunger: int = 30


DEFAULT_CARE_RULES = CareRules()


def apply_effect(pet: Pet, effect: ItemEffect) -> int:
    """Applies an effect vector in place with clamping. Returns levels gained."""
    pet.hunger = clamp(pet.hunger + effect.hunger)
    pet.happiness = clamp(pet.happiness + effect.happiness)
    pet.energy = clamp(pet.energy + effect.energy)
    pet.health = clamp(pet.health + effect.health)
    pet.cleanliness = clamp(pet.cleanliness + effect.cleanliness)
    pet.sickness = clamp(pet.sickness + effect.sickness)
    return grant_experience(pet, effect.experience)


def feed(pet: Pet, now: datetime, rules: CareRules = DEFAULT_CARE_RULES) -> ActionResult:
    if not pet.is_alive:
        return ActionResult.fail(ErrorCode.PET_IS_DEAD, pet)
    if pet.points < rules.feed_cost:
        return ActionResult.fail(ErrorCode.INSUFFICIENT_FUNDS, pet)

    pet = pet.model_copy(deep=True)
    pet.points -= rules.feed_cost
    level_ups = apply_effect(pet, ItemEffect(
        hunger=rules.feed_hunger, happiness=rules.feed_happiness, experience=rules.feed_experience,
    ))
    pet.last_fed = now
    return ActionResult.ok(pet, level_ups)


def play(pet: Pet, now: datetime, rules: CareRules = DEFAULT_CARE_RULES) -> ActionResult:
    if not pet.is_alive:
        return ActionResult.fail(ErrorCode.PET_IS_DEAD, pet)
    if pet.points < rules.play_cost:
        return ActionResult.fail(ErrorCode.INSUFFICIENT_FUNDS, pet)

    pet = pet.model_copy(deep=True)
    pet.points -= rules.play_cost
    level_ups = apply_effect(pet, ItemEffect(
        happiness=rules.play_happiness, energy=rules.play_energy, experience=rules.play_experience,
    ))
    pet.last_played = now
    return ActionResult.ok(pet, level_ups)


def sleep(pet: Pet, now: datetime, rules: CareRules = DEFAULT_CARE_RULES) -> ActionResult:
    if not pet.is_alive:
        return ActionResult.fail(ErrorCode.PET_IS_DEAD, pet)

    pet = pet.model_copy(deep=True)
    apply_effect(pet, ItemEffect(energy=rules.sleep_energy, health=rules.sleep_health))
    pet.last_slept = now
    return ActionResult.ok(pet)


def use_item(pet: Pet, item_id: str, now: datetime, rules: CareRules = DEFAULT_CARE_RULES) -> ActionResult:
    """
    Consumes one owned item and applies its cached effect.
    The revival item is the only thing usable on a dead pet, and only then.
    """
    reviving = item_id == REVIVAL_ITEM_ID
    if reviving and pet.is_alive:
        return ActionResult.fail(ErrorCode.PET_ALREADY_ALIVE, pet)
    if not reviving and not pet.is_alive:
        return ActionResult.fail(ErrorCode.PET_MUST_BE_ALIVE, pet)

    entry = pet.inventory.get(item_id)
    if entry is None or entry.quantity < 1:
        return ActionResult.fail(ErrorCode.ITEM_NOT_OWNED, pet)

    pet = pet.model_copy(deep=True)
    entry = pet.inventory[item_id]
    entry.quantity -= 1
    if entry.quantity == 0:
        del pet.inventory[item_id]

    if reviving:
        pet.is_alive = True
        pet.death_date = None
        pet.health = max(pet.health, rules.revival_health)
        pet.hunger = max(pet.hunger, rules.revival_hunger)
        # Time spent dead must not be charged as decay after revival.
        pet.last_decay_tick = now
        logger.info(f"Pet '{pet.name}' revived")

    level_ups = apply_effect(pet, entry.item.effect)
    return ActionResult.ok(pet, level_ups)


def roll_daily_counters(pet: Pet, today: date) -> bool:
    """Zeroes the per-day reading counters once the calendar date moves on. In place."""
    if pet.stats_date == today:
        return False
    pet.books_read_today = 0
    pet.reading_time_today = 0
    pet.stats_date = today
    return True


def reward_for_reading(pet: Pet, minutes: int, completed_book: bool, now: datetime,
                       rules: CareRules = DEFAULT_CARE_RULES) -> ActionResult:
    """Converts a finished reading session (and optionally a finished book) into XP and points."""
    if not pet.is_alive:
        return ActionResult.fail(ErrorCode.PET_IS_DEAD, pet)
    if minutes < 0 or minutes > MAX_READING_MINUTES:
        return ActionResult.fail(ErrorCode.INVALID_AMOUNT, pet)

    pet = pet.model_copy(deep=True)
    roll_daily_counters(pet, now.date())
    experience = minutes // rules.minutes_per_xp
    points = minutes // rules.minutes_per_point
    happiness = minutes // rules.minutes_per_happiness

    if completed_book:
        experience += rules.book_experience
        points += rules.book_points
        happiness += rules.book_happiness
        pet.total_books_read += 1
        pet.books_read_today += 1
        badge = BOOK_BADGES.get(pet.total_books_read)
        if badge and badge not in pet.badges:
            pet.badges.append(badge)

    pet.total_reading_time += minutes
    pet.reading_time_today += minutes
    pet.points += points
    level_ups = apply_effect(pet, ItemEffect(happiness=happiness, experience=experience))
    return ActionResult.ok(pet, level_ups)


def rename(pet: Pet, name: str) -> ActionResult:
    if not pet.is_alive:
        return ActionResult.fail(ErrorCode.PET_IS_DEAD, pet)
    name = name.strip()
    if not name or len(name) > MAX_NAME_LENGTH:
        return ActionResult.fail(ErrorCode.INVALID_NAME, pet)

    pet = pet.model_copy(deep=True)
    pet.name = name
    return ActionResult.ok(pet)


def credit_coins(pet: Pet, amount: int) -> ActionResult:
    """Minigame payout. Coins are credited even to a dead pet; they are the owner's, not the pet's."""
    if amount < 0:
        return ActionResult.fail(ErrorCode.INVALID_AMOUNT, pet)
    pet = pet.model_copy(deep=True)
    pet.coins += amount
    return ActionResult.ok(pet)
