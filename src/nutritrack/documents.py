"""Mapping between domain records and JSON-compatible store documents."""

from datetime import datetime

from nutritrack.domain.meals import (
    Confidence,
    DailyLog,
    ItemOrigin,
    Meal,
    MealItem,
    MealType,
)
from nutritrack.domain.models import ActivityLevel, Gender, Goal, UserProfile
from nutritrack.domain.nutrition import (
    MicroTarget,
    Nutrients,
    NutritionTargets,
    SourceDatabase,
)
from nutritrack.services.dates import local_date_key
from nutritrack.services.store import Document


def nutrients_to_document(nutrients: Nutrients) -> Document:
    return {
        "calories": nutrients.calories,
        "protein": nutrients.protein,
        "carbs": nutrients.carbs,
        "fat": nutrients.fat,
        "fiber": nutrients.fiber,
        "micros": list(nutrients.micros),
        "source_database": str(nutrients.source_database),
    }


def nutrients_from_document(doc: Document) -> Nutrients:
    return Nutrients(
        calories=int(doc.get("calories", 0)),
        protein=float(doc.get("protein", 0.0)),
        carbs=float(doc.get("carbs", 0.0)),
        fat=float(doc.get("fat", 0.0)),
        fiber=float(doc.get("fiber", 0.0)),
        micros=tuple(str(micro) for micro in doc.get("micros") or []),
        source_database=SourceDatabase(
            doc.get("source_database", SourceDatabase.CUSTOM)
        ),
    )


def targets_to_document(targets: NutritionTargets) -> Document:
    return {
        "calories": targets.calories,
        "protein": targets.protein,
        "carbs": targets.carbs,
        "fat": targets.fat,
        "fiber": targets.fiber,
        "micros": [
            {"name": micro.name, "amount": micro.amount} for micro in targets.micros
        ],
    }


def targets_from_document(doc: Document) -> NutritionTargets:
    return NutritionTargets(
        calories=int(doc.get("calories", 0)),
        protein=float(doc.get("protein", 0.0)),
        carbs=float(doc.get("carbs", 0.0)),
        fat=float(doc.get("fat", 0.0)),
        fiber=float(doc.get("fiber", 0.0)),
        micros=tuple(
            MicroTarget(name=str(micro["name"]), amount=str(micro["amount"]))
            for micro in doc.get("micros") or []
        ),
    )


def meal_item_to_document(item: MealItem) -> Document:
    return {
        "id": item.id,
        "food_id": item.food_id,
        "portion_grams": item.portion_grams,
        "portion_label": item.portion_label,
        "nutrients": nutrients_to_document(item.nutrients),
        "confidence": str(item.confidence),
        "origin": str(item.origin),
    }


def meal_item_from_document(doc: Document) -> MealItem:
    return MealItem(
        id=str(doc["id"]),
        food_id=str(doc["food_id"]),
        portion_grams=float(doc["portion_grams"]),
        portion_label=str(doc.get("portion_label", "")),
        nutrients=nutrients_from_document(doc.get("nutrients") or {}),
        confidence=Confidence(doc.get("confidence", Confidence.MEDIUM)),
        origin=ItemOrigin(doc.get("origin", ItemOrigin.MANUAL)),
    )


def meal_to_document(meal: Meal) -> Document:
    """Serialize a meal; ``day`` is the range-query field for its local day."""
    return {
        "id": meal.id,
        "day": local_date_key(meal.timestamp),
        "timestamp": meal.timestamp.isoformat(),
        "meal_type": str(meal.meal_type),
        "items": [meal_item_to_document(item) for item in meal.items],
        "total_nutrients": nutrients_to_document(meal.total_nutrients),
    }


def meal_from_document(doc: Document) -> Meal:
    return Meal(
        id=str(doc["id"]),
        timestamp=datetime.fromisoformat(str(doc["timestamp"])),
        items=tuple(meal_item_from_document(item) for item in doc.get("items") or []),
        meal_type=MealType(doc.get("meal_type", MealType.SNACK)),
        total_nutrients=nutrients_from_document(doc.get("total_nutrients") or {}),
    )


def daily_log_to_document(log: DailyLog) -> Document:
    """Serialize a daily log row; meals live in their own table."""
    return {
        "date": log.date,
        "meal_ids": [meal.id for meal in log.meals],
        "total_nutrients": nutrients_to_document(log.total_nutrients),
        "targets": targets_to_document(log.targets),
    }


def daily_log_from_document(doc: Document, meals: list[Meal]) -> DailyLog:
    return DailyLog(
        date=str(doc["date"]),
        meals=tuple(meals),
        total_nutrients=nutrients_from_document(doc.get("total_nutrients") or {}),
        targets=targets_from_document(doc.get("targets") or {}),
    )


def daily_log_to_payload(log: DailyLog) -> Document:
    """Full representation with embedded meals, for API responses."""
    payload = daily_log_to_document(log)
    payload.pop("meal_ids")
    payload["meals"] = [meal_to_document(meal) for meal in log.meals]
    return payload


def profile_to_document(profile: UserProfile) -> Document:
    return {
        "name": profile.name,
        "gender": str(profile.gender),
        "age": profile.age,
        "height_cm": profile.height_cm,
        "weight_kg": profile.weight_kg,
        "activity_level": str(profile.activity_level),
        "goal": str(profile.goal),
        "dietary_preference": profile.dietary_preference,
        "medical_conditions": profile.medical_conditions,
        "targets": targets_to_document(profile.targets),
        "plan_explanation": profile.plan_explanation,
        "created_at": profile.created_at.isoformat(),
    }


def profile_from_document(doc: Document) -> UserProfile:
    return UserProfile(
        name=str(doc.get("name", "")),
        gender=Gender(doc["gender"]),
        age=int(doc["age"]),
        height_cm=float(doc["height_cm"]),
        weight_kg=float(doc["weight_kg"]),
        activity_level=ActivityLevel(doc["activity_level"]),
        goal=Goal(doc["goal"]),
        dietary_preference=str(doc.get("dietary_preference", "")),
        medical_conditions=str(doc.get("medical_conditions", "")),
        targets=targets_from_document(doc.get("targets") or {}),
        plan_explanation=str(doc.get("plan_explanation", "")),
        created_at=datetime.fromisoformat(str(doc["created_at"])),
    )
