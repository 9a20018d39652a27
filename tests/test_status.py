import pytest
from pydantic import ValidationError

from models import Mood, MoodThresholds
from status import classify, mood_for


def _codes(status):
    return [alert.code for alert in status.alerts]


def test_healthy_pet_is_happy_without_alerts(make_pet):
    status = classify(make_pet())
    assert status.mood == Mood.HAPPY
    assert status.alerts == []


@pytest.mark.parametrize("happiness, mood", [
    (71, Mood.HAPPY),
    (70, Mood.NEUTRAL),
    (30, Mood.NEUTRAL),
    (29, Mood.SAD),
    (0, Mood.SAD),
])
def test_mood_bands(make_pet, happiness, mood):
    assert mood_for(make_pet(happiness=happiness)) == mood


def test_unhappy_and_starving_is_dying(make_pet):
    status = classify(make_pet(happiness=10, hunger=10))
    assert status.mood == Mood.DYING
    assert _codes(status) == ["dying", "hunger", "happiness"]


def test_every_active_alert_is_reported(make_pet):
    status = classify(make_pet(hunger=20, health=30, sickness=60, energy=5))
    assert _codes(status) == ["hunger-low", "health-low", "sickness-moderate", "energy"]


def test_critical_alerts(make_pet):
    status = classify(make_pet(health=10, sickness=90))
    assert _codes(status) == ["health", "sickness"]


def test_death_supersedes_everything(make_pet):
    status = classify(make_pet(is_alive=False, health=0, hunger=0, happiness=0, sickness=100))
    assert status.mood == Mood.DEAD
    assert _codes(status) == ["death"]


def test_custom_thresholds(make_pet):
    thresholds = MoodThresholds(sad_below=50, happy_above=90)
    assert mood_for(make_pet(happiness=80), thresholds) == Mood.NEUTRAL
    assert mood_for(make_pet(happiness=40), thresholds) == Mood.SAD


def test_thresholds_must_be_ordered():
    with pytest.raises(ValidationError):
        MoodThresholds(sad_below=80, happy_above=20)
