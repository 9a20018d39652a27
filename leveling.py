# leveling.py: experience cascade and evolution gating.

from typing import Callable, Dict, NamedTuple, Optional

from models import ActionResult, ErrorCode, EvolutionStage, Pet, STAGE_ORDER


class StageThreshold(NamedTuple):
    level: int
    books: int = 0


# Requirements to ENTER each stage.
EVOLUTION_THRESHOLDS: Dict[EvolutionStage, StageThreshold] = {
    EvolutionStage.BABY: StageThreshold(level=3),
    EvolutionStage.CHILD: StageThreshold(level=8, books=1),
    EvolutionStage.TEEN: StageThreshold(level=15, books=3),
    EvolutionStage.ADULT: StageThreshold(level=25, books=10),
    EvolutionStage.ELDER: StageThreshold(level=40, books=25),
}


def experience_to_next(level: int) -> int:
    return 100 + (level - 1) * 50


def grant_experience(pet: Pet, amount: int, curve: Callable[[int], int] = experience_to_next) -> int:
    """
    Adds experience to a working copy and resolves every level-up it pays for.
    `curve` maps a level to the experience needed to leave it.
    Returns the number of levels gained.
    """
    if amount <= 0:
        return 0
    pet.experience += amount
    gained = 0
    while pet.experience >= pet.experience_to_next:
        pet.experience -= pet.experience_to_next
        pet.level += 1
        pet.experience_to_next = curve(pet.level)
        gained += 1
    return gained


def next_stage(stage: EvolutionStage) -> Optional[EvolutionStage]:
    index = STAGE_ORDER.index(stage)
    if index + 1 >= len(STAGE_ORDER):
        return None
    return STAGE_ORDER[index + 1]


def can_evolve(pet: Pet, thresholds: Dict[EvolutionStage, StageThreshold] = EVOLUTION_THRESHOLDS) -> bool:
    if not pet.is_alive:
        return False
    target = next_stage(pet.evolution_stage)
    if target is None:
        return False
    required = thresholds[target]
    return pet.level >= required.level and pet.total_books_read >= required.books


def evolve(pet: Pet, thresholds: Dict[EvolutionStage, StageThreshold] = EVOLUTION_THRESHOLDS) -> ActionResult:
    """Moves the pet exactly one stage forward, refilling happiness and health."""
    if not pet.is_alive:
        return ActionResult.fail(ErrorCode.PET_IS_DEAD, pet)
    if not can_evolve(pet, thresholds):
        return ActionResult.fail(ErrorCode.EVOLUTION_LOCKED, pet)

    pet = pet.model_copy(deep=True)
    pet.evolution_stage = next_stage(pet.evolution_stage)
    pet.happiness = 100
    pet.health = 100
    return ActionResult.ok(pet)


def evolution_requirement(pet: Pet, thresholds: Dict[EvolutionStage, StageThreshold] = EVOLUTION_THRESHOLDS) -> dict:
    """What the next stage needs, for progress bars. Empty once the final stage is reached."""
    target = next_stage(pet.evolution_stage)
    if target is None:
        return {}
    required = thresholds[target]
    return {
        "stage": target.value,
        "current_level": pet.level,
        "required_level": required.level,
        "current_books": pet.total_books_read,
        "required_books": required.books,
    }


def level_progress(pet: Pet) -> float:
    """Percent of the way to the next level."""
    return pet.experience / pet.experience_to_next * 100
