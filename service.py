# service.py: PetService, the single entry point callers hold a reference to.
#
# Wires the store, the pure rule modules and the minigame manager together and
# makes every mutation an atomic read-modify-write under the pet's lock.

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

import actions
import leveling
import shop
import status
from database import Database
from decay import DEFAULT_DECAY_RATES, DecayRates, apply_decay
from minigames import MinigameManager
from models import (
    ActionResult, CompleteResult, ErrorCode, GameCompleteMessage, Minigame, MoodThresholds,
    Pet, PetStatus, PlayCheck, ShopItem, StartResult,
)
from store import PetStore

logger = logging.getLogger(__name__)


class PetService:
    def __init__(self, database: Database, clock: Callable[[], datetime] = datetime.now,
                 minigames: Optional[MinigameManager] = None,
                 care_rules: actions.CareRules = actions.DEFAULT_CARE_RULES,
                 decay_rates: DecayRates = DEFAULT_DECAY_RATES,
                 mood_thresholds: MoodThresholds = status.DEFAULT_MOOD_THRESHOLDS):
        self.db = database
        self.clock = clock
        self.store = PetStore(database, clock)
        self.minigames = minigames or MinigameManager(clock=clock)
        self.care_rules = care_rules
        self.decay_rates = decay_rates
        self.mood_thresholds = mood_thresholds

    def _mutate(self, user_id: str, action: Callable[[Pet], ActionResult], name: str) -> ActionResult:
        with self.store.lock(user_id):
            pet = self.store.get(user_id)
            result = action(pet)
            if result.success:
                self.store.put(user_id, result.pet)
                if result.level_ups:
                    logger.info(f"User {user_id}: pet reached level {result.pet.level}")
            else:
                logger.debug(f"User {user_id}: {name} rejected ({result.error.value})")
        return result

    # --- Queries ---

    def get_pet(self, user_id: str) -> Pet:
        return self.store.get(user_id)

    def status(self, user_id: str) -> PetStatus:
        return status.classify(self.store.get(user_id), self.mood_thresholds)

    def can_evolve(self, user_id: str) -> bool:
        return leveling.can_evolve(self.store.get(user_id))

    def evolution_requirement(self, user_id: str) -> dict:
        return leveling.evolution_requirement(self.store.get(user_id))

    def reading_today(self, user_id: str) -> dict:
        """Today's reading counters, zeroed if the pet has not been ticked since midnight."""
        pet = self.store.get(user_id)
        actions.roll_daily_counters(pet, self.clock().date())
        return {"books_read": pet.books_read_today, "reading_time": pet.reading_time_today}

    def list_catalog(self) -> List[ShopItem]:
        return shop.list_catalog()

    def list_unlocked(self, user_id: str) -> List[ShopItem]:
        return shop.list_unlocked(self.store.get(user_id))

    # --- Care actions ---

    def feed(self, user_id: str) -> ActionResult:
        return self._mutate(user_id, lambda pet: actions.feed(pet, self.clock(), self.care_rules), "feed")

    def play(self, user_id: str) -> ActionResult:
        return self._mutate(user_id, lambda pet: actions.play(pet, self.clock(), self.care_rules), "play")

    def sleep(self, user_id: str) -> ActionResult:
        return self._mutate(user_id, lambda pet: actions.sleep(pet, self.clock(), self.care_rules), "sleep")

    def use_item(self, user_id: str, item_id: str) -> ActionResult:
        return self._mutate(
            user_id, lambda pet: actions.use_item(pet, item_id, self.clock(), self.care_rules), "use_item",
        )

    def buy(self, user_id: str, item_id: str) -> ActionResult:
        return self._mutate(user_id, lambda pet: shop.buy(pet, item_id), "buy")

    def reward_for_reading(self, user_id: str, minutes: int, completed_book: bool = False) -> ActionResult:
        return self._mutate(
            user_id,
            lambda pet: actions.reward_for_reading(pet, minutes, completed_book, self.clock(), self.care_rules),
            "reward_for_reading",
        )

    def rename(self, user_id: str, name: str) -> ActionResult:
        return self._mutate(user_id, lambda pet: actions.rename(pet, name), "rename")

    def evolve(self, user_id: str) -> ActionResult:
        result = self._mutate(user_id, leveling.evolve, "evolve")
        if result.success:
            logger.info(f"User {user_id}: pet evolved to {result.pet.evolution_stage.value}")
        return result

    def credit_coins(self, user_id: str, amount: int) -> ActionResult:
        return self._mutate(user_id, lambda pet: actions.credit_coins(pet, amount), "credit_coins")

    def reset_pet(self, user_id: str) -> Pet:
        with self.store.lock(user_id):
            logger.info(f"User {user_id}: pet reset")
            return self.store.reset(user_id)

    # --- Decay ---

    def tick(self, user_id: str) -> int:
        """
        Applies pending decay to one pet and rolls its daily reading counters
        over at midnight. Returns the number of decay units applied.
        """
        with self.store.lock(user_id):
            now = self.clock()
            pet = self.store.get(user_id)
            was_alive = pet.is_alive
            units = apply_decay(pet, now, self.decay_rates)
            rolled = actions.roll_daily_counters(pet, now.date())
            if units or rolled:
                self.store.put(user_id, pet)
                if was_alive and not pet.is_alive:
                    logger.warning(f"User {user_id}: pet '{pet.name}' died at {pet.death_date}")
        return units

    def tick_all(self) -> Dict[str, int]:
        return {user_id: self.tick(user_id) for user_id in self.store.known_users()}

    # --- Minigames ---

    def available_games(self, user_id: str) -> List[Minigame]:
        return self.minigames.available_games(self.store.get(user_id))

    def can_play(self, user_id: str, game_id: str) -> PlayCheck:
        return self.minigames.can_play(user_id, game_id, self.store.get(user_id))

    def start_minigame(self, user_id: str, game_id: str) -> StartResult:
        return self.minigames.start(user_id, game_id, self.store.get(user_id))

    def complete_minigame(self, session_id: str, score: int, validation_token: str) -> CompleteResult:
        session = self.minigames.get_session(session_id)
        if session is None:
            return CompleteResult(success=False, error=ErrorCode.SESSION_NOT_FOUND)

        result = self.minigames.complete(
            session_id, score, validation_token,
            on_coins_awarded=lambda coins: self.credit_coins(session.user_id, coins),
        )
        if result.success:
            self.db.record_game_result(session_id, session.user_id, session.game_id,
                                       score, result.coins_awarded)
        return result

    def handle_game_message(self, message) -> dict:
        """Host-side handler for messages posted by an embedded game."""
        if isinstance(message, GameCompleteMessage):
            result = self.complete_minigame(message.session_id, message.score, message.validation_token)
            return {"type": "game_result", "session_id": message.session_id,
                    **result.model_dump(mode="json")}
        return self.minigames.handle_message(message)

    def sweep_sessions(self) -> int:
        return self.minigames.cleanup_old_sessions()

    def game_leaderboard(self, game_id: str, limit: int = 10):
        return self.db.get_game_leaderboard(game_id, limit)
