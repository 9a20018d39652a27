import json
import threading
from concurrent.futures import ThreadPoolExecutor

from catalog import REVIVAL_ITEM_ID
from minigames import MinigameManager
from models import ErrorCode, GameCompleteMessage, Mood, Pet
from service import PetService


def _run_concurrently(fn, count):
    barrier = threading.Barrier(count)

    def call(_):
        barrier.wait()
        return fn()

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(call, range(count)))


def test_new_user_gets_default_pet(service):
    pet = service.get_pet("u1")
    assert pet.name == "Bookworm"
    assert pet.points == 10
    assert pet.evolution_stage.value == "egg"


def test_changes_survive_restart(service, db, clock):
    assert service.feed("u1").success
    assert service.rename("u1", "Pip").success

    restarted = PetService(db, clock=clock)
    pet = restarted.get_pet("u1")
    assert pet.name == "Pip"
    assert pet.points == 7


def test_corrupted_record_falls_back_to_default(service, db):
    db.save_pet("u1", "{not json")
    assert service.get_pet("u1").name == "Bookworm"


def test_out_of_range_record_falls_back_to_default(service, db, clock):
    data = json.loads(Pet.new(clock(), name="Broken").model_dump_json())
    data["hunger"] = 500
    db.save_pet("u1", json.dumps(data))

    pet = service.get_pet("u1")
    assert pet.name == "Bookworm"
    assert pet.hunger == 80


def test_failed_write_keeps_memory_state(service, monkeypatch):
    monkeypatch.setattr(service.db, "save_pet", lambda user_id, data: False)
    assert service.feed("u1").success
    assert service.get_pet("u1").points == 7


def test_snapshots_are_detached(service):
    pet = service.get_pet("u1")
    pet.points = 999
    assert service.get_pet("u1").points == 10


def test_concurrent_buys_never_overspend(service):
    # 10 points buys exactly two 5-point biscuits
    results = _run_concurrently(lambda: service.buy("u1", "book_biscuit"), 8)

    assert sum(r.success for r in results) == 2
    assert all(r.error == ErrorCode.INSUFFICIENT_FUNDS for r in results if not r.success)
    pet = service.get_pet("u1")
    assert pet.points == 0
    assert pet.inventory["book_biscuit"].quantity == 2


def test_concurrent_feeds_lose_no_update(service, clock):
    pet = Pet.new(clock())
    pet.points = 300
    service.store.put("u1", pet)

    results = _run_concurrently(lambda: service.feed("u1"), 50)

    assert all(r.success for r in results)
    pet = service.get_pet("u1")
    assert pet.points == 150
    # 50 feeds x 5 XP = 100 + 150 to reach level 3
    assert (pet.level, pet.experience) == (3, 0)


def test_tick_applies_and_persists_decay(service, db, clock):
    service.get_pet("u1")
    clock.advance(hours=10, minutes=20)

    assert service.tick("u1") == 10
    assert service.tick("u1") == 0
    assert service.get_pet("u1").hunger == 60
    assert PetService(db, clock=clock).get_pet("u1").hunger == 60


def test_tick_all_covers_stored_pets(service, db, clock):
    service.feed("a")
    service.feed("b")
    clock.advance(hours=2)

    restarted = PetService(db, clock=clock)
    assert restarted.tick_all() == {"a": 2, "b": 2}


def test_death_and_revival(service, clock):
    pet = Pet.new(clock())
    pet.hunger = 0
    pet.health = 2
    pet.points = 100
    service.store.put("u1", pet)

    clock.advance(hours=1)
    service.tick("u1")
    assert not service.get_pet("u1").is_alive
    assert service.status("u1").mood == Mood.DEAD
    assert service.feed("u1").error == ErrorCode.PET_IS_DEAD

    assert service.buy("u1", REVIVAL_ITEM_ID).success
    clock.advance(hours=30)
    result = service.use_item("u1", REVIVAL_ITEM_ID)
    assert result.success
    assert result.pet.is_alive
    # time spent dead is not charged afterwards
    assert service.tick("u1") == 0
    assert service.get_pet("u1").health == 50


def test_minigame_completion_credits_coins_once(service):
    init = service.start_minigame("u1", "word_puzzle").init

    result = service.complete_minigame(init.session_id, 4, init.validation_token)
    assert result.success
    assert result.coins_awarded == 16
    assert service.get_pet("u1").coins == 16

    again = service.complete_minigame(init.session_id, 4, init.validation_token)
    assert again.error == ErrorCode.ALREADY_COMPLETED
    assert service.get_pet("u1").coins == 16

    board = service.game_leaderboard("word_puzzle")
    assert len(board) == 1
    assert board[0]["rank"] == 1
    assert board[0]["user_id"] == "u1"
    assert board[0]["score"] == 4


def test_concurrent_minigame_completion_credits_once(service):
    init = service.start_minigame("u1", "word_puzzle").init

    results = _run_concurrently(
        lambda: service.complete_minigame(init.session_id, 10, init.validation_token), 12,
    )

    assert sum(r.success for r in results) == 1
    assert service.get_pet("u1").coins == 25


def test_handle_game_message_routes_completion(service):
    init = service.start_minigame("u1", "word_puzzle").init
    reply = service.handle_game_message(GameCompleteMessage(
        type="game_complete", session_id=init.session_id, score=0,
        validation_token=init.validation_token,
    ))
    assert reply["type"] == "game_result"
    assert reply["coins_awarded"] == 10
    assert service.get_pet("u1").coins == 10


def test_unknown_session(service):
    assert service.complete_minigame("ghost", 1, "t").error == ErrorCode.SESSION_NOT_FOUND


def test_locked_game_uses_pet_level(service):
    assert service.start_minigame("u1", "memory_match").error == ErrorCode.GAME_LOCKED
    assert [g.id for g in service.available_games("u1")] == ["word_puzzle"]


def test_coins_reach_dead_pet(service, clock):
    init = service.start_minigame("u1", "word_puzzle").init
    pet = service.get_pet("u1")
    pet.is_alive = False
    pet.health = 0
    service.store.put("u1", pet)

    assert service.complete_minigame(init.session_id, 0, init.validation_token).success
    assert service.get_pet("u1").coins == 10


def test_reset_pet(service):
    service.feed("u1")
    assert service.reset_pet("u1").points == 10
    assert service.get_pet("u1").points == 10


def test_sweep_sessions(db, clock):
    service = PetService(db, clock=clock, minigames=MinigameManager(clock=clock))
    service.start_minigame("u1", "word_puzzle")
    clock.advance(hours=25)
    assert service.sweep_sessions() == 1


def test_tick_rolls_daily_reading_counters(service, clock):
    service.reward_for_reading("u1", 30, completed_book=True)
    assert service.reading_today("u1") == {"books_read": 1, "reading_time": 30}

    clock.advance(hours=16)
    # past midnight the counters read as zero even before the tick
    assert service.reading_today("u1") == {"books_read": 0, "reading_time": 0}

    assert service.tick("u1") == 16
    pet = service.get_pet("u1")
    assert (pet.books_read_today, pet.reading_time_today) == (0, 0)
    assert pet.stats_date == clock().date()
    assert pet.total_books_read == 1


def test_one_lock_per_user_is_reused(service):
    for _ in range(3):
        service.feed("u1")
        service.feed("u2")
        service.tick("u1")
    assert sorted(service.store._locks) == ["u1", "u2"]
