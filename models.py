# models.py: Pydantic models for the pet, the shop, minigames and API payloads.
# Describes the shape of the data the engine keeps and the API accepts.

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


# Upper bounds on externally reported numbers. Reading minutes cover one
# session; scores cap the coins a single game can pay.
MAX_READING_MINUTES = 24 * 60
MAX_GAME_SCORE = 10_000


class ErrorCode(str, Enum):
    """Business-level failure kinds. Never raised, always returned in a result."""
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ITEM_LOCKED = "item_locked"
    ITEM_NOT_OWNED = "item_not_owned"
    ITEM_NOT_FOUND = "item_not_found"
    PET_IS_DEAD = "pet_is_dead"
    PET_MUST_BE_ALIVE = "pet_must_be_alive"
    PET_ALREADY_ALIVE = "pet_already_alive"
    EVOLUTION_LOCKED = "evolution_locked"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_NAME = "invalid_name"
    GAME_NOT_FOUND = "game_not_found"
    GAME_INACTIVE = "game_inactive"
    GAME_LOCKED = "game_locked"
    DAILY_LIMIT_REACHED = "daily_limit_reached"
    SESSION_NOT_FOUND = "session_not_found"
    INVALID_TOKEN = "invalid_token"
    ALREADY_COMPLETED = "already_completed"
    INVALID_SCORE = "invalid_score"


class EvolutionStage(str, Enum):
    EGG = "egg"
    BABY = "baby"
    CHILD = "child"
    TEEN = "teen"
    ADULT = "adult"
    ELDER = "elder"


# Order matters: evolution only ever moves one step to the right.
STAGE_ORDER: List[EvolutionStage] = list(EvolutionStage)


class ItemCategory(str, Enum):
    FOOD = "food"
    TOY = "toy"
    MEDICINE = "medicine"
    DECORATION = "decoration"
    SPECIAL = "special"


class Rarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class Currency(str, Enum):
    POINTS = "points"
    COINS = "coins"


# --- Shop ---

class ItemEffect(BaseModel):
    """Deltas applied to the pet when an item is used. Absent fields change nothing."""
    hunger: int = 0
    happiness: int = 0
    energy: int = 0
    health: int = 0
    cleanliness: int = 0
    sickness: int = 0
    experience: int = 0


class UnlockRequirement(BaseModel):
    level: Optional[int] = None
    books: Optional[int] = None
    badges: List[str] = Field(default_factory=list)


class ShopItem(BaseModel):
    model_config = {"frozen": True}

    id: str
    name: str
    description: str = ""
    category: ItemCategory
    rarity: Rarity = Rarity.COMMON
    price: int = Field(..., ge=0)
    currency: Currency = Currency.POINTS
    effect: ItemEffect = Field(default_factory=ItemEffect)
    unlock_requirement: Optional[UnlockRequirement] = None


class InventoryEntry(BaseModel):
    item_id: str
    quantity: int = Field(0, ge=0)
    item: ShopItem  # snapshot taken at purchase time


# --- Pet ---

class Pet(BaseModel):
    """
    The canonical record of one user's pet.
    Field bounds are checked on load, so a corrupted save fails validation
    instead of leaking out-of-range values into the simulation.
    """
    name: str = "Bookworm"
    level: int = Field(1, ge=1)
    experience: int = Field(0, ge=0)
    experience_to_next: int = Field(100, gt=0)
    evolution_stage: EvolutionStage = EvolutionStage.EGG

    hunger: int = Field(80, ge=0, le=100)  # 100 = full, 0 = starving
    happiness: int = Field(80, ge=0, le=100)
    energy: int = Field(80, ge=0, le=100)
    health: int = Field(100, ge=0, le=100)
    cleanliness: int = Field(80, ge=0, le=100)
    sickness: int = Field(0, ge=0, le=100)  # higher is worse

    is_alive: bool = True
    death_date: Optional[datetime] = None

    points: int = Field(10, ge=0)
    coins: int = Field(0, ge=0)
    inventory: Dict[str, InventoryEntry] = Field(default_factory=dict)
    badges: List[str] = Field(default_factory=list)

    total_books_read: int = Field(0, ge=0)
    total_reading_time: int = Field(0, ge=0)  # minutes

    # Reset when stats_date falls behind the current calendar date.
    books_read_today: int = Field(0, ge=0)
    reading_time_today: int = Field(0, ge=0)  # minutes
    stats_date: date = Field(default_factory=date.today)

    created_at: datetime = Field(default_factory=datetime.now)
    last_fed: datetime = Field(default_factory=datetime.now)
    last_played: datetime = Field(default_factory=datetime.now)
    last_slept: datetime = Field(default_factory=datetime.now)
    last_decay_tick: datetime = Field(default_factory=datetime.now)

    @classmethod
    def new(cls, now: datetime, name: str = "Bookworm") -> "Pet":
        """Default pet with every timestamp pinned to `now`."""
        return cls(
            name=name, created_at=now, last_fed=now,
            last_played=now, last_slept=now, last_decay_tick=now,
            stats_date=now.date(),
        )


class ActionResult(BaseModel):
    """Outcome of any pet-mutating operation. `pet` is the resulting snapshot."""
    success: bool
    error: Optional[ErrorCode] = None
    pet: Optional[Pet] = None
    level_ups: int = 0

    @classmethod
    def ok(cls, pet: Pet, level_ups: int = 0) -> "ActionResult":
        return cls(success=True, pet=pet, level_ups=level_ups)

    @classmethod
    def fail(cls, error: ErrorCode, pet: Optional[Pet] = None) -> "ActionResult":
        return cls(success=False, error=error, pet=pet)


# --- Status ---

class AlertSeverity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"
    DEATH = "death"


class Mood(str, Enum):
    HAPPY = "happy"
    NEUTRAL = "neutral"
    SAD = "sad"
    DYING = "dying"
    DEAD = "dead"


class Alert(BaseModel):
    code: str
    severity: AlertSeverity


class PetStatus(BaseModel):
    mood: Mood
    alerts: List[Alert] = Field(default_factory=list)


# --- Minigames ---

class Minigame(BaseModel):
    id: str
    name: str
    description: str = ""
    difficulty: Literal["easy", "medium", "hard"] = "easy"
    base_reward: int = Field(..., ge=0)
    bonus_multiplier: float = Field(1.0, ge=0)
    max_plays_per_day: int = Field(..., ge=0)
    unlock_requirement: Optional[UnlockRequirement] = None
    game_url: Optional[str] = None
    is_active: bool = True


class GameSession(BaseModel):
    id: str
    game_id: str
    user_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    score: Optional[int] = None
    completed: bool = False
    coins_awarded: int = 0
    validation_token: str


class GameStats(BaseModel):
    game_id: str
    plays_today: int = 0
    total_plays: int = 0
    high_score: int = 0
    last_played: datetime
    total_coins_earned: int = 0


class PlayCheck(BaseModel):
    can_play: bool
    plays_left: int = 0
    reason: Optional[ErrorCode] = None


class InitMinigameMessage(BaseModel):
    type: Literal["init_minigame"] = "init_minigame"
    session_id: str
    validation_token: str
    game_id: str


class StartResult(BaseModel):
    success: bool
    error: Optional[ErrorCode] = None
    init: Optional[InitMinigameMessage] = None


class CompleteResult(BaseModel):
    success: bool
    error: Optional[ErrorCode] = None
    coins_awarded: int = 0


# Messages sent by an embedded game surface.

class GameReadyMessage(BaseModel):
    type: Literal["game_ready"]
    session_id: Optional[str] = None
    game_id: Optional[str] = None


class GameCompleteMessage(BaseModel):
    type: Literal["game_complete"]
    session_id: str
    score: int = Field(..., ge=0, le=MAX_GAME_SCORE)
    validation_token: str


class GameErrorMessage(BaseModel):
    type: Literal["game_error"]
    session_id: Optional[str] = None
    error: str


GameMessage = Annotated[
    Union[GameReadyMessage, GameCompleteMessage, GameErrorMessage],
    Field(discriminator="type"),
]


# --- API request bodies ---

class ReadingReward(BaseModel):
    """Sent by the reading-session tracker when a session ends or a book is finished."""
    minutes: int = Field(..., ge=0, le=MAX_READING_MINUTES)
    completed_book: bool = False


class RenameRequest(BaseModel):
    name: str


class ItemAction(BaseModel):
    """Shop/inventory action, either buying or using an item."""
    item_id: str
    action_type: str = Field(..., pattern="^(buy|use)$")  # only 'buy' or 'use'


class StartGameRequest(BaseModel):
    user_id: str


class MessageEnvelope(BaseModel):
    message: GameMessage


class MoodThresholds(BaseModel):
    """Happiness bands for mood. sad: < sad_below, happy: > happy_above."""
    sad_below: int = 30
    happy_above: int = 70

    @model_validator(mode="after")
    def _ordered(self):
        if self.sad_below > self.happy_above:
            raise ValueError("sad_below must not exceed happy_above")
        return self
