# decay.py: time-based aging of the pet's needs.
#
# Decay is applied in whole units of elapsed time. last_decay_tick only moves by
# the units actually consumed, so the leftover fraction carries into the next
# tick and splitting an interval never changes the result.

from dataclasses import dataclass
from datetime import datetime, timedelta

from models import Pet


@dataclass(frozen=True)
class DecayRates:
    """Per-unit rates. All of them are tuning knobs, not contracts."""
    unit: timedelta = timedelta(hours=1)
    hunger: int = 2
    energy: int = 1
    happiness: int = 1
    cleanliness: int = 1
    sickness_gain: int = 2        # while hunger or cleanliness is critical
    critical_level: int = 15
    starving_health_loss: int = 2  # while hunger was already 0
    sick_health_loss: int = 1      # while sickness > sick_threshold
    sick_threshold: int = 80


DEFAULT_DECAY_RATES = DecayRates()


def clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


def elapsed_units(pet: Pet, now: datetime, rates: DecayRates = DEFAULT_DECAY_RATES) -> int:
    elapsed = now - pet.last_decay_tick
    if elapsed <= timedelta(0):
        return 0
    return int(elapsed // rates.unit)


def _decay_one_unit(pet: Pet, rates: DecayRates) -> None:
    # Starvation damage starts on the unit after hunger reaches zero.
    starving = pet.hunger == 0
    pet.hunger = clamp(pet.hunger - rates.hunger)
    pet.energy = clamp(pet.energy - rates.energy)
    pet.happiness = clamp(pet.happiness - rates.happiness)
    pet.cleanliness = clamp(pet.cleanliness - rates.cleanliness)

    if pet.hunger < rates.critical_level or pet.cleanliness < rates.critical_level:
        pet.sickness = clamp(pet.sickness + rates.sickness_gain)

    health_loss = 0
    if starving:
        health_loss += rates.starving_health_loss
    if pet.sickness > rates.sick_threshold:
        health_loss += rates.sick_health_loss
    pet.health = clamp(pet.health - health_loss)


def apply_decay(pet: Pet, now: datetime, rates: DecayRates = DEFAULT_DECAY_RATES) -> int:
    """
    Ages a working copy of the pet up to `now`.

    Returns the number of whole units consumed. A dead pet only has its tick
    advanced. When health hits zero mid-way, the pet dies at the timestamp of
    that unit and the remaining units are consumed without effect.
    """
    units = elapsed_units(pet, now, rates)
    if units == 0:
        return 0

    start = pet.last_decay_tick
    for step in range(1, units + 1):
        if not pet.is_alive:
            break
        _decay_one_unit(pet, rates)
        if pet.health == 0:
            pet.is_alive = False
            pet.death_date = start + rates.unit * step

    pet.last_decay_tick = start + rates.unit * units
    return units
