# status.py: mood and alert classification. Read-only, no side effects.
# Alert codes match what the presentation layer keys its messages on.

from typing import List

from models import Alert, AlertSeverity, Mood, MoodThresholds, Pet, PetStatus

DEFAULT_MOOD_THRESHOLDS = MoodThresholds()


def mood_for(pet: Pet, thresholds: MoodThresholds = DEFAULT_MOOD_THRESHOLDS) -> Mood:
    if not pet.is_alive:
        return Mood.DEAD
    if pet.happiness < thresholds.sad_below:
        if pet.health < 20 or pet.hunger < 15:
            return Mood.DYING
        return Mood.SAD
    if pet.happiness > thresholds.happy_above:
        return Mood.HAPPY
    return Mood.NEUTRAL


def alerts_for(pet: Pet, mood: Mood) -> List[Alert]:
    if not pet.is_alive:
        return [Alert(code="death", severity=AlertSeverity.DEATH)]

    alerts = []
    if mood == Mood.DYING:
        alerts.append(Alert(code="dying", severity=AlertSeverity.CRITICAL))

    if pet.hunger < 15:
        alerts.append(Alert(code="hunger", severity=AlertSeverity.CRITICAL))
    elif pet.hunger < 30:
        alerts.append(Alert(code="hunger-low", severity=AlertSeverity.WARNING))

    if pet.health < 20:
        alerts.append(Alert(code="health", severity=AlertSeverity.CRITICAL))
    elif pet.health < 40:
        alerts.append(Alert(code="health-low", severity=AlertSeverity.WARNING))

    if pet.sickness > 80:
        alerts.append(Alert(code="sickness", severity=AlertSeverity.CRITICAL))
    elif pet.sickness > 50:
        alerts.append(Alert(code="sickness-moderate", severity=AlertSeverity.WARNING))

    if pet.energy < 10:
        alerts.append(Alert(code="energy", severity=AlertSeverity.WARNING))
    if pet.happiness < 20:
        alerts.append(Alert(code="happiness", severity=AlertSeverity.WARNING))
    return alerts


def classify(pet: Pet, thresholds: MoodThresholds = DEFAULT_MOOD_THRESHOLDS) -> PetStatus:
    """Full set of active alerts plus the mood band; the caller decides what to show."""
    mood = mood_for(pet, thresholds)
    return PetStatus(mood=mood, alerts=alerts_for(pet, mood))
