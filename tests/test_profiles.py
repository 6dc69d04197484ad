"""Tests for profiles and target calculation."""

import asyncio

from nutritrack.domain.models import ActivityLevel, Gender, Goal
from nutritrack.domain.nutrition import DEFAULT_TARGETS
from nutritrack.services.profiles import MIN_CALORIES, ProfileService, calculate_targets


def test_calculate_targets_female_maintain() -> None:
    targets, explanation = calculate_targets(
        55, 160, 30, Gender.FEMALE, ActivityLevel.MODERATE, Goal.MAINTAIN
    )

    assert targets.calories == 1920
    assert targets.protein == 144
    assert targets.carbs == 168
    assert targets.fat == 75
    assert targets.fiber == 30
    assert [micro.name for micro in targets.micros] == ["Iron", "Calcium", "Vitamin D"]
    assert "BMR (1239)" in explanation


def test_calculate_targets_male_gain() -> None:
    targets, _ = calculate_targets(
        80, 180, 25, Gender.MALE, ActivityLevel.ACTIVE, Goal.GAIN_MUSCLE
    )

    assert targets.calories == 3414


def test_calculate_targets_has_calorie_floor() -> None:
    targets, _ = calculate_targets(
        40, 140, 80, Gender.OTHER, ActivityLevel.SEDENTARY, Goal.LOSE_WEIGHT
    )

    assert targets.calories == MIN_CALORIES


def test_profile_service_defaults_before_onboarding(
    profile_service: ProfileService,
) -> None:
    assert asyncio.run(profile_service.get_profile()) is None
    assert asyncio.run(profile_service.current_targets()) == DEFAULT_TARGETS


def test_onboard_persists_profile(profile_service: ProfileService) -> None:
    profile = asyncio.run(
        profile_service.onboard(
            name="Ravi",
            gender=Gender.MALE,
            age=25,
            height_cm=180,
            weight_kg=80,
            activity_level=ActivityLevel.ACTIVE,
            goal=Goal.GAIN_MUSCLE,
            medical_conditions="none",
        )
    )

    stored = asyncio.run(profile_service.get_profile())

    assert stored == profile
    assert stored.dietary_preference == "Vegetarian"
    assert stored.plan_explanation.startswith("Calculated based on BMR")
    assert asyncio.run(profile_service.current_targets()) == profile.targets
