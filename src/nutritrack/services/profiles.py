"""User profile persistence and target calculation."""

from dataclasses import dataclass
from datetime import UTC, datetime

from nutritrack.documents import profile_from_document, profile_to_document
from nutritrack.domain.models import ActivityLevel, Gender, Goal, UserProfile
from nutritrack.domain.nutrition import DEFAULT_TARGETS, MicroTarget, NutritionTargets
from nutritrack.services.store import PROFILES, NutritionStore, StoreTransaction

PROFILE_KEY = "current_user"

MIN_CALORIES = 1200
DEFAULT_FIBER_G = 30

_ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

_GOAL_ADJUSTMENT = {
    Goal.LOSE_WEIGHT: -500,
    Goal.MAINTAIN: 0,
    Goal.GAIN_MUSCLE: 300,
}

_DEFAULT_MICROS = (
    MicroTarget(name="Iron", amount="18mg"),
    MicroTarget(name="Calcium", amount="1000mg"),
    MicroTarget(name="Vitamin D", amount="600IU"),
)


def calculate_targets(  # noqa: PLR0913
    weight_kg: float,
    height_cm: float,
    age: int,
    gender: Gender,
    activity_level: ActivityLevel,
    goal: Goal,
) -> tuple[NutritionTargets, str]:
    """Derive daily targets with the Mifflin-St Jeor equation.

    Protein, carbs and fat take 30/35/35 percent of calories.
    """
    bmr = 10 * weight_kg + 6.25 * height_cm - 5 * age
    bmr += 5 if gender == Gender.MALE else -161
    tdee = bmr * _ACTIVITY_MULTIPLIERS[activity_level] + _GOAL_ADJUSTMENT[goal]

    calories = max(MIN_CALORIES, round(tdee))
    targets = NutritionTargets(
        calories=calories,
        protein=round(calories * 0.30 / 4),
        carbs=round(calories * 0.35 / 4),
        fat=round(calories * 0.35 / 9),
        fiber=DEFAULT_FIBER_G,
        micros=_DEFAULT_MICROS,
    )
    explanation = (
        f"Calculated based on BMR ({round(bmr)}) and TDEE ({round(tdee)}). "
        f"Adjusted for {goal}."
    )
    return targets, explanation


async def read_profile_targets(transaction: StoreTransaction) -> NutritionTargets:
    """Return the stored profile's targets or the defaults, inside a transaction."""
    document = await transaction.get(PROFILES, PROFILE_KEY)
    if document is None:
        return DEFAULT_TARGETS
    return profile_from_document(document).targets


@dataclass
class ProfileService:
    """Application service for the single local user profile."""

    store: NutritionStore

    async def get_profile(self) -> UserProfile | None:
        """Return the stored profile, if onboarding happened."""
        async with self.store.transaction(PROFILES) as transaction:
            document = await transaction.get(PROFILES, PROFILE_KEY)
        return profile_from_document(document) if document else None

    async def save_profile(self, profile: UserProfile) -> UserProfile:
        """Create or replace the profile."""
        async with self.store.transaction(PROFILES) as transaction:
            await transaction.put(PROFILES, PROFILE_KEY, profile_to_document(profile))
        return profile

    async def current_targets(self) -> NutritionTargets:
        """Return the profile targets, or the defaults before onboarding."""
        async with self.store.transaction(PROFILES) as transaction:
            return await read_profile_targets(transaction)

    async def onboard(  # noqa: PLR0913
        self,
        *,
        name: str,
        gender: Gender,
        age: int,
        height_cm: float,
        weight_kg: float,
        activity_level: ActivityLevel,
        goal: Goal,
        dietary_preference: str = "Vegetarian",
        medical_conditions: str = "",
    ) -> UserProfile:
        """Create the profile with freshly calculated targets."""
        targets, explanation = calculate_targets(
            weight_kg, height_cm, age, gender, activity_level, goal
        )
        profile = UserProfile(
            name=name,
            gender=gender,
            age=age,
            height_cm=height_cm,
            weight_kg=weight_kg,
            activity_level=activity_level,
            goal=goal,
            targets=targets,
            created_at=datetime.now(tz=UTC),
            dietary_preference=dietary_preference,
            medical_conditions=medical_conditions,
            plan_explanation=explanation,
        )
        return await self.save_profile(profile)
