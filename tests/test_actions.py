import random
from datetime import timedelta

import actions
import shop
from catalog import REVIVAL_ITEM_ID, SHOP_ITEMS
from models import MAX_READING_MINUTES, ErrorCode, ItemEffect


def test_feed_spends_points_and_fills_hunger(make_pet, start):
    pet = make_pet(points=10, hunger=50)
    result = actions.feed(pet, start)

    assert result.success
    assert result.pet.points == 7
    assert result.pet.hunger == 70
    assert result.pet.happiness == 85
    assert result.pet.experience == 5
    # the input snapshot is left alone
    assert pet.points == 10
    assert pet.hunger == 50


def test_feed_clamps_at_full(make_pet, start):
    result = actions.feed(make_pet(hunger=98), start)
    assert result.pet.hunger == 100


def test_play_without_points_changes_nothing(make_pet, start):
    pet = make_pet(points=2)
    result = actions.play(pet, start)

    assert not result.success
    assert result.error == ErrorCode.INSUFFICIENT_FUNDS
    assert result.pet == pet


def test_play_trades_energy_for_happiness(make_pet, start):
    result = actions.play(make_pet(), start + timedelta(minutes=5))
    pet = result.pet
    assert pet.happiness == 100
    assert pet.energy == 65
    assert pet.points == 5
    assert pet.experience == 10
    assert pet.last_played == start + timedelta(minutes=5)


def test_sleep_is_free(make_pet, start):
    pet = make_pet(energy=30, health=70, points=0)
    result = actions.sleep(pet, start)
    assert result.success
    assert result.pet.energy == 70
    assert result.pet.health == 80
    assert result.pet.points == 0


def test_dead_pet_rejects_care(make_pet, start):
    pet = make_pet(is_alive=False, health=0, death_date=start)
    assert actions.feed(pet, start).error == ErrorCode.PET_IS_DEAD
    assert actions.play(pet, start).error == ErrorCode.PET_IS_DEAD
    assert actions.sleep(pet, start).error == ErrorCode.PET_IS_DEAD
    assert actions.rename(pet, "Ghost").error == ErrorCode.PET_IS_DEAD
    assert actions.reward_for_reading(pet, 30, False, start).error == ErrorCode.PET_IS_DEAD


def test_apply_effect_keeps_needs_in_range(make_pet):
    pet = make_pet()
    actions.apply_effect(pet, ItemEffect(hunger=1000, happiness=-1000, energy=500,
                                         health=-500, cleanliness=250, sickness=999))
    assert (pet.hunger, pet.happiness, pet.energy) == (100, 0, 100)
    assert (pet.health, pet.cleanliness, pet.sickness) == (0, 100, 100)


def test_use_item_not_owned(make_pet, start):
    result = actions.use_item(make_pet(), "book_biscuit", start)
    assert result.error == ErrorCode.ITEM_NOT_OWNED


def test_use_item_consumes_one_and_drops_empty_entry(make_pet, start):
    pet = shop.buy(shop.buy(make_pet(points=10, hunger=40), "book_biscuit").pet, "book_biscuit").pet
    assert pet.inventory["book_biscuit"].quantity == 2

    pet = actions.use_item(pet, "book_biscuit", start).pet
    assert pet.inventory["book_biscuit"].quantity == 1
    assert pet.hunger == 55

    pet = actions.use_item(pet, "book_biscuit", start).pet
    assert "book_biscuit" not in pet.inventory
    assert pet.hunger == 70


def test_revival_brings_pet_back(make_pet, start):
    dead = make_pet(points=100, is_alive=False, health=0, hunger=0, death_date=start)
    owned = shop.buy(dead, REVIVAL_ITEM_ID).pet
    later = start + timedelta(hours=5)

    result = actions.use_item(owned, REVIVAL_ITEM_ID, later)

    pet = result.pet
    assert result.success
    assert pet.is_alive
    assert pet.death_date is None
    assert pet.health == 50
    assert pet.hunger == 30
    assert pet.happiness == 100
    assert pet.last_decay_tick == later
    assert REVIVAL_ITEM_ID not in pet.inventory


def test_revival_item_only_works_on_dead_pet(make_pet, start):
    pet = shop.buy(make_pet(points=100), REVIVAL_ITEM_ID).pet
    result = actions.use_item(pet, REVIVAL_ITEM_ID, start)
    assert result.error == ErrorCode.PET_ALREADY_ALIVE
    assert result.pet.inventory[REVIVAL_ITEM_ID].quantity == 1


def test_other_items_need_living_pet(make_pet, start):
    pet = shop.buy(make_pet(), "book_biscuit").pet
    pet.is_alive = False
    pet.health = 0
    assert actions.use_item(pet, "book_biscuit", start).error == ErrorCode.PET_MUST_BE_ALIVE


def test_reading_session_reward(make_pet, start):
    result = actions.reward_for_reading(make_pet(), 60, False, start)
    pet = result.pet
    assert pet.experience == 12
    assert pet.points == 16
    assert pet.happiness == 86
    assert pet.total_reading_time == 60
    assert pet.total_books_read == 0


def test_finished_book_bonus_and_badges(make_pet, start):
    pet = actions.reward_for_reading(make_pet(), 0, True, start).pet
    assert pet.experience == 50
    assert pet.points == 30
    assert pet.total_books_read == 1
    assert pet.badges == ["first-book"]

    pet.total_books_read = 9
    pet = actions.reward_for_reading(pet, 0, True, start).pet
    assert pet.badges == ["first-book", "book-lover"]


def test_negative_minutes_rejected(make_pet, start):
    assert actions.reward_for_reading(make_pet(), -5, False, start).error == ErrorCode.INVALID_AMOUNT


def test_rename(make_pet):
    assert actions.rename(make_pet(), "  Pip ").pet.name == "Pip"
    assert actions.rename(make_pet(), "   ").error == ErrorCode.INVALID_NAME
    assert actions.rename(make_pet(), "x" * 33).error == ErrorCode.INVALID_NAME


def test_credit_coins_reaches_dead_pet(make_pet):
    pet = make_pet(is_alive=False, health=0)
    assert actions.credit_coins(pet, 25).pet.coins == 25
    assert actions.credit_coins(pet, -1).error == ErrorCode.INVALID_AMOUNT


def test_random_action_sequences_keep_invariants(make_pet, start):
    rng = random.Random(1234)
    item_ids = [item.id for item in SHOP_ITEMS]
    pet = make_pet()

    for _ in range(500):
        roll = rng.randrange(6)
        if roll == 0:
            result = actions.feed(pet, start)
        elif roll == 1:
            result = actions.play(pet, start)
        elif roll == 2:
            result = actions.sleep(pet, start)
        elif roll == 3:
            result = shop.buy(pet, rng.choice(item_ids))
        elif roll == 4:
            result = actions.use_item(pet, rng.choice(item_ids), start)
        else:
            result = actions.reward_for_reading(pet, rng.randrange(0, 40), rng.random() < 0.05, start)
        pet = result.pet

        assert pet.points >= 0
        assert pet.coins >= 0
        for need in (pet.hunger, pet.happiness, pet.energy, pet.health, pet.cleanliness, pet.sickness):
            assert 0 <= need <= 100
        assert pet.experience < pet.experience_to_next
        assert all(entry.quantity > 0 for entry in pet.inventory.values())


def test_reading_minutes_are_bounded(make_pet, start):
    too_long = actions.reward_for_reading(make_pet(), MAX_READING_MINUTES + 1, False, start)
    assert too_long.error == ErrorCode.INVALID_AMOUNT
    assert too_long.pet.experience == 0

    full_day = actions.reward_for_reading(make_pet(), MAX_READING_MINUTES, False, start)
    assert full_day.success
    assert full_day.pet.total_reading_time == MAX_READING_MINUTES


def test_daily_reading_counters_roll_over(make_pet, start):
    pet = actions.reward_for_reading(make_pet(), 30, True, start).pet
    pet = actions.reward_for_reading(pet, 15, False, start + timedelta(hours=2)).pet
    assert pet.books_read_today == 1
    assert pet.reading_time_today == 45

    tomorrow = start + timedelta(days=1)
    pet = actions.reward_for_reading(pet, 10, False, tomorrow).pet
    assert pet.books_read_today == 0
    assert pet.reading_time_today == 10
    assert pet.stats_date == tomorrow.date()
    assert pet.total_books_read == 1
    assert pet.total_reading_time == 55


def test_roll_daily_counters_same_day_is_noop(make_pet, start):
    pet = make_pet(books_read_today=2, reading_time_today=40)
    assert not actions.roll_daily_counters(pet, start.date())
    assert pet.reading_time_today == 40
    assert actions.roll_daily_counters(pet, (start + timedelta(days=1)).date())
    assert (pet.books_read_today, pet.reading_time_today) == (0, 0)
