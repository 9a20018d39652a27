# minigames.py: reward-granting minigame sessions with daily play caps.
#
# A session goes Started -> Completed exactly once. The validation token is a
# replay deterrent only, not a security boundary.

import base64
import logging
import math
import secrets
import threading
import uuid
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional

from catalog import MINIGAMES, meets_requirement
from models import (
    MAX_GAME_SCORE, CompleteResult, ErrorCode, GameErrorMessage, GameReadyMessage, GameSession,
    GameStats, InitMinigameMessage, Minigame, Pet, PlayCheck, StartResult,
)

logger = logging.getLogger(__name__)

CoinsCallback = Callable[[int], None]


class MinigameManager:
    """
    Owns the minigame catalog, live sessions and per-user stats.
    One lock guards all three, which keeps completion a compare-and-set.
    """

    def __init__(self, games: Optional[List[Minigame]] = None,
                 clock: Callable[[], datetime] = datetime.now,
                 retention: timedelta = timedelta(hours=24)):
        source = MINIGAMES if games is None else games
        self._games: Dict[str, Minigame] = {game.id: game.model_copy() for game in source}
        self._sessions: Dict[str, GameSession] = {}
        self._stats: Dict[str, Dict[str, GameStats]] = {}
        self._clock = clock
        self._retention = retention
        self._lock = threading.Lock()

    # --- Catalog ---

    def get_game(self, game_id: str) -> Optional[Minigame]:
        return self._games.get(game_id)

    def list_games(self) -> List[Minigame]:
        return list(self._games.values())

    def available_games(self, pet: Pet) -> List[Minigame]:
        """Active games whose unlock requirement the pet meets."""
        return [
            game for game in self._games.values()
            if game.is_active and self._unlocked(game, pet)
        ]

    def add_game(self, game: Minigame) -> bool:
        with self._lock:
            if game.id in self._games:
                return False
            self._games[game.id] = game
            return True

    def update_game(self, game_id: str, **updates) -> bool:
        with self._lock:
            game = self._games.get(game_id)
            if game is None:
                return False
            self._games[game_id] = game.model_copy(update=updates)
            return True

    def enable_game(self, game_id: str) -> bool:
        return self.update_game(game_id, is_active=True)

    def disable_game(self, game_id: str) -> bool:
        return self.update_game(game_id, is_active=False)

    # --- Stats ---

    def stats(self, user_id: str, game_id: str) -> Optional[GameStats]:
        with self._lock:
            stats = self._stats.get(user_id, {}).get(game_id)
            return stats.model_copy() if stats else None

    def all_stats(self, user_id: str) -> Dict[str, GameStats]:
        with self._lock:
            return {game_id: s.model_copy() for game_id, s in self._stats.get(user_id, {}).items()}

    def clear_stats(self, user_id: str) -> None:
        with self._lock:
            self._stats.pop(user_id, None)

    def active_sessions(self, user_id: str) -> List[GameSession]:
        with self._lock:
            return [
                s.model_copy() for s in self._sessions.values()
                if s.user_id == user_id and not s.completed
            ]

    def get_session(self, session_id: str) -> Optional[GameSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy() if session else None

    # --- Session lifecycle ---

    def can_play(self, user_id: str, game_id: str, pet: Optional[Pet] = None) -> PlayCheck:
        with self._lock:
            return self._check_play(user_id, game_id, pet, self._clock().date())

    def start(self, user_id: str, game_id: str, pet: Optional[Pet] = None) -> StartResult:
        """Opens a session and counts it against today's cap, whether or not it is ever completed."""
        with self._lock:
            now = self._clock()
            check = self._check_play(user_id, game_id, pet, now.date())
            if not check.can_play:
                return StartResult(success=False, error=check.reason)

            session_id = f"{game_id}_{uuid.uuid4().hex}"
            session = GameSession(
                id=session_id,
                game_id=game_id,
                user_id=user_id,
                start_time=now,
                validation_token=self._generate_validation_token(session_id, now),
            )
            self._sessions[session_id] = session

            stats = self._stats_for(user_id, game_id, now)
            if stats.last_played.date() != now.date():
                stats.plays_today = 0
            stats.plays_today += 1
            stats.total_plays += 1
            stats.last_played = now

        logger.info(f"Minigame session {session_id} started for user {user_id}")
        return StartResult(success=True, init=InitMinigameMessage(
            session_id=session_id,
            validation_token=session.validation_token,
            game_id=game_id,
        ))

    def complete(self, session_id: str, score: int, validation_token: str,
                 on_coins_awarded: Optional[CoinsCallback] = None) -> CompleteResult:
        """
        Finalizes a session. Only the first valid caller wins; everyone after it
        gets ALREADY_COMPLETED and the callback fires once, for the winner.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return CompleteResult(success=False, error=ErrorCode.SESSION_NOT_FOUND)
            if session.validation_token != validation_token:
                logger.warning(f"Invalid validation token for session {session_id}")
                return CompleteResult(success=False, error=ErrorCode.INVALID_TOKEN)
            if session.completed:
                return CompleteResult(success=False, error=ErrorCode.ALREADY_COMPLETED)
            if score < 0 or score > MAX_GAME_SCORE:
                return CompleteResult(success=False, error=ErrorCode.INVALID_SCORE)
            game = self._games.get(session.game_id)
            if game is None:
                return CompleteResult(success=False, error=ErrorCode.GAME_NOT_FOUND)

            now = self._clock()
            coins = game.base_reward + math.floor(score * game.bonus_multiplier)
            session.end_time = now
            session.score = score
            session.completed = True
            session.coins_awarded = coins

            stats = self._stats_for(session.user_id, session.game_id, now)
            stats.high_score = max(stats.high_score, score)
            stats.total_coins_earned += coins

        logger.info(f"Minigame session {session_id} completed: score={score}, coins={coins}")
        if on_coins_awarded is not None:
            on_coins_awarded(coins)
        return CompleteResult(success=True, coins_awarded=coins)

    def cleanup_old_sessions(self) -> int:
        """Drops sessions older than the retention window. Returns how many were removed."""
        with self._lock:
            cutoff = self._clock() - self._retention
            stale = [sid for sid, s in self._sessions.items() if s.start_time < cutoff]
            for sid in stale:
                del self._sessions[sid]
        if stale:
            logger.info(f"Removed {len(stale)} stale minigame sessions")
        return len(stale)

    # --- Host protocol ---

    def handle_message(self, message) -> dict:
        """
        Acknowledges lifecycle messages from an embedded game surface.
        Completion is not handled here: it pays out, so it goes through `complete`
        with a coin callback.
        """
        if isinstance(message, GameReadyMessage):
            logger.info(f"Game ready: session={message.session_id} game={message.game_id}")
            return {"type": "ack", "session_id": message.session_id}

        if isinstance(message, GameErrorMessage):
            # The session stays open; it will be swept once it passes retention.
            logger.warning(f"Game error in session {message.session_id}: {message.error}")
            return {"type": "ack", "session_id": message.session_id}

        raise TypeError(f"Unsupported minigame message: {type(message).__name__}")

    # --- Internals (call with the lock held) ---

    def _unlocked(self, game: Minigame, pet: Optional[Pet]) -> bool:
        if game.unlock_requirement is None:
            return True
        if pet is None:
            return False
        return meets_requirement(game.unlock_requirement, pet.level, pet.total_books_read, pet.badges)

    def _check_play(self, user_id: str, game_id: str, pet: Optional[Pet], today: date) -> PlayCheck:
        game = self._games.get(game_id)
        if game is None:
            return PlayCheck(can_play=False, reason=ErrorCode.GAME_NOT_FOUND)
        if not game.is_active:
            return PlayCheck(can_play=False, reason=ErrorCode.GAME_INACTIVE)
        if not self._unlocked(game, pet):
            return PlayCheck(can_play=False, reason=ErrorCode.GAME_LOCKED)

        stats = self._stats.get(user_id, {}).get(game_id)
        plays_today = 0
        if stats is not None and stats.last_played.date() == today:
            plays_today = stats.plays_today
        plays_left = max(0, game.max_plays_per_day - plays_today)
        if plays_left == 0:
            return PlayCheck(can_play=False, plays_left=0, reason=ErrorCode.DAILY_LIMIT_REACHED)
        return PlayCheck(can_play=True, plays_left=plays_left)

    def _stats_for(self, user_id: str, game_id: str, now: datetime) -> GameStats:
        user_stats = self._stats.setdefault(user_id, {})
        if game_id not in user_stats:
            user_stats[game_id] = GameStats(game_id=game_id, last_played=now)
        return user_stats[game_id]

    @staticmethod
    def _generate_validation_token(session_id: str, now: datetime) -> str:
        salt = secrets.token_hex(6)
        raw = f"{session_id}_{int(now.timestamp() * 1000)}_{salt}"
        return base64.urlsafe_b64encode(raw.encode()).decode()
