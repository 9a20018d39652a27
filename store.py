# store.py: the canonical in-memory pet records, one lock per pet.

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, Iterator, List

from pydantic import ValidationError

from database import Database
from models import Pet

logger = logging.getLogger(__name__)


class PetStore:
    """
    Holds every loaded pet and hands out snapshots.

    Callers that read-modify-write a pet must do so inside `lock(user_id)`;
    `get` and `put` themselves never hold the per-pet lock.
    """

    def __init__(self, database: Database, clock: Callable[[], datetime] = datetime.now):
        self._db = database
        self._clock = clock
        self._pets: Dict[str, Pet] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()  # protects the two dicts above
        # _locks grows alongside _pets and is never pruned: dropping a lock that
        # another thread already fetched would allow two writers for one pet.

    @contextmanager
    def lock(self, user_id: str) -> Iterator[None]:
        with self._guard:
            pet_lock = self._locks.setdefault(user_id, threading.Lock())
        with pet_lock:
            yield

    def get(self, user_id: str) -> Pet:
        """Returns a deep copy; loads (or creates) the pet on first access."""
        with self._guard:
            pet = self._pets.get(user_id)
        if pet is None:
            pet = self._load(user_id)
            with self._guard:
                pet = self._pets.setdefault(user_id, pet)
        return pet.model_copy(deep=True)

    def put(self, user_id: str, pet: Pet) -> None:
        """Replaces the record and persists it. A failed write is logged, not rolled back."""
        with self._guard:
            self._pets[user_id] = pet.model_copy(deep=True)
        if not self._db.save_pet(user_id, pet.model_dump_json()):
            logger.warning(f"Pet for user {user_id} kept in memory only; persistence failed")

    def reset(self, user_id: str) -> Pet:
        pet = Pet.new(self._clock())
        self.put(user_id, pet)
        return pet.model_copy(deep=True)

    def known_users(self) -> List[str]:
        with self._guard:
            loaded = set(self._pets)
        return sorted(loaded.union(self._db.list_user_ids()))

    def _load(self, user_id: str) -> Pet:
        raw = self._db.load_pet(user_id)
        if raw is None:
            logger.info(f"Creating new pet for user {user_id}")
            return Pet.new(self._clock())
        try:
            return Pet.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Corrupted pet data for user {user_id}, starting fresh: {e}")
            return Pet.new(self._clock())
