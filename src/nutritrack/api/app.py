"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from nutritrack.api.models import (
    AnalyzeRequest,
    ItemGramsRequest,
    MealRequest,
    ProfileRequest,
    TargetsRequest,
)
from nutritrack.app_logging import configure_logging
from nutritrack.containers import AppContainer
from nutritrack.documents import (
    daily_log_to_payload,
    meal_item_to_document,
    nutrients_to_document,
    profile_to_document,
    targets_to_document,
)
from nutritrack.domain.candidates import MealCandidate
from nutritrack.domain.meals import ItemOrigin, MealItem
from nutritrack.errors import (
    CandidateParseError,
    DataIntegrityError,
    InvalidPortionError,
    NotFoundError,
)
from nutritrack.services.dates import parse_date_key, today_key
from nutritrack.services.entries import build_meal
from nutritrack.services.history import DEFAULT_PERIOD_DAYS


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(NotFoundError)
    async def not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(InvalidPortionError)
    @app.exception_handler(CandidateParseError)
    async def unprocessable(_: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)}
        )

    @app.exception_handler(DataIntegrityError)
    async def integrity_failure(_: Request, exc: DataIntegrityError) -> JSONResponse:
        logger.error("Data integrity failure: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/foods/search")
    async def search_foods(request: Request, q: str = "") -> dict[str, object]:
        """Search the catalog by name or alias."""
        state_container: AppContainer = request.app.state.container
        foods = state_container.search.search_foods(q)
        return {"items": [asdict(food) for food in foods]}

    @app.get("/foods/{food_id}")
    async def get_food(food_id: str, request: Request) -> dict[str, object]:
        """Return one catalog entry."""
        state_container: AppContainer = request.app.state.container
        return asdict(state_container.catalog.require(food_id))

    @app.get("/foods/{food_id}/nutrients")
    async def food_nutrients(
        food_id: str,
        request: Request,
        grams: float | None = None,
        portion: str | None = None,
    ) -> dict[str, object]:
        """Calculate nutrients for a portion of a catalog food."""
        state_container: AppContainer = request.app.state.container
        calculator = state_container.calculator
        if grams is None:
            grams = calculator.portion_for(food_id, portion)
        nutrients = calculator.calculate_nutrients(food_id, grams)
        return {
            "food_id": food_id,
            "grams": grams,
            "nutrients": nutrients_to_document(nutrients),
        }

    @app.post("/meals", status_code=status.HTTP_201_CREATED)
    async def log_meal(body: MealRequest, request: Request) -> dict[str, object]:
        """Resolve and save a meal, returning the updated day."""
        state_container: AppContainer = request.app.state.container
        items = _resolve_items(state_container, body)
        service = state_container.daily_log_service
        if body.timestamp is None:
            timestamp = service.clock()
        else:
            timestamp = service.localize(body.timestamp)
        meal = build_meal(items, timestamp, body.meal_type)
        log = await service.save_meal(meal)
        return {"meal_id": meal.id, "log": daily_log_to_payload(log)}

    @app.post("/meals/analyze")
    async def analyze_meal(body: AnalyzeRequest, request: Request) -> dict[str, object]:
        """Ask the model for candidates and resolve them without saving."""
        state_container: AppContainer = request.app.state.container
        if state_container.analysis_service is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Meal analysis is not configured",
            )
        image_bytes = _decode_image(body.image_base64)
        if not (body.description or "").strip() and not image_bytes:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="A description or an image is required",
            )
        try:
            candidates = await state_container.analysis_service.analyze(
                body.description, image_bytes
            )
        except CandidateParseError:
            raise
        except Exception as exc:
            logger.exception("Meal analysis failed")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail="Meal analysis failed"
            ) from exc
        origin = ItemOrigin.SCAN if image_bytes else ItemOrigin.AI
        resolution = state_container.entry_service.resolve_all(candidates, origin)
        return {
            "items": [meal_item_to_document(item) for item in resolution.items],
            "unresolved": resolution.unresolved,
        }

    @app.delete("/meals/{meal_id}")
    async def delete_meal(meal_id: str, request: Request) -> dict[str, object]:
        """Delete a meal and return its recomputed day."""
        state_container: AppContainer = request.app.state.container
        log = await state_container.daily_log_service.delete_meal(meal_id)
        if log is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return daily_log_to_payload(log)

    @app.patch("/meals/{meal_id}/items/{item_id}")
    async def update_item_grams(
        meal_id: str, item_id: str, body: ItemGramsRequest, request: Request
    ) -> dict[str, object]:
        """Change one item's weight and return the recomputed day."""
        state_container: AppContainer = request.app.state.container
        log = await state_container.daily_log_service.update_meal_item_grams(
            meal_id, item_id, body.grams
        )
        if log is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return daily_log_to_payload(log)

    @app.get("/logs/today")
    async def today_log(request: Request) -> dict[str, object]:
        """Return today's log without creating one."""
        state_container: AppContainer = request.app.state.container
        log = await state_container.daily_log_service.get_today_log()
        return daily_log_to_payload(log)

    @app.put("/logs/today/targets")
    async def update_today_targets(
        body: TargetsRequest, request: Request
    ) -> dict[str, object]:
        """Replace today's targets snapshot."""
        state_container: AppContainer = request.app.state.container
        log = await state_container.daily_log_service.update_daily_targets(
            body.to_domain()
        )
        return daily_log_to_payload(log)

    @app.get("/logs/summary")
    async def period_summary(
        request: Request, end: str | None = None, days: int = DEFAULT_PERIOD_DAYS
    ) -> dict[str, object]:
        """Return per-day totals and averages ending at ``end`` (today by default)."""
        state_container: AppContainer = request.app.state.container
        end_key = _date_key(end) if end else today_key(state_container.daily_log_service.clock)
        if days < 1:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="days must be at least 1",
            )
        summary = await state_container.history_service.period_summary(end_key, days)
        return asdict(summary)

    @app.get("/logs/{date_key}")
    async def log_for_day(date_key: str, request: Request) -> dict[str, object]:
        """Return a day's log without creating one."""
        state_container: AppContainer = request.app.state.container
        log = await state_container.daily_log_service.get_log(_date_key(date_key))
        return daily_log_to_payload(log)

    @app.get("/logs")
    async def list_logs(request: Request, start: str, end: str) -> dict[str, object]:
        """Return stored logs in an inclusive date window."""
        state_container: AppContainer = request.app.state.container
        logs = await state_container.history_service.list_logs(
            _date_key(start), _date_key(end)
        )
        return {"logs": [daily_log_to_payload(log) for log in logs]}

    @app.get("/profile")
    async def get_profile(request: Request) -> dict[str, object]:
        """Return the profile, or the default targets before onboarding."""
        state_container: AppContainer = request.app.state.container
        profile = await state_container.profile_service.get_profile()
        if profile is None:
            targets = await state_container.profile_service.current_targets()
            return {"profile": None, "targets": targets_to_document(targets)}
        return {
            "profile": profile_to_document(profile),
            "targets": targets_to_document(profile.targets),
        }

    @app.put("/profile")
    async def put_profile(body: ProfileRequest, request: Request) -> dict[str, object]:
        """Create or replace the profile with freshly calculated targets."""
        state_container: AppContainer = request.app.state.container
        profile = await state_container.profile_service.onboard(**body.model_dump())
        return {
            "profile": profile_to_document(profile),
            "targets": targets_to_document(profile.targets),
        }

    return app


def _resolve_items(container: AppContainer, body: MealRequest) -> list[MealItem]:
    items: list[MealItem] = []
    unresolved: list[str] = []
    for entry in body.items:
        if entry.food_id:
            items.append(
                container.entry_service.manual_item(
                    entry.food_id, entry.grams, entry.portion
                )
            )
            continue
        if not entry.name or not entry.name.strip():
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Each item needs a food_id or a name",
            )
        candidate = MealCandidate.model_validate(entry.model_dump(exclude={"food_id"}))
        item = container.entry_service.resolve(candidate, ItemOrigin.MANUAL)
        if item is None:
            unresolved.append(candidate.name)
        else:
            items.append(item)
    if unresolved:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"unresolved": unresolved},
        )
    return items


def _decode_image(image_base64: str | None) -> bytes | None:
    if not image_base64:
        return None
    payload = image_base64.split(",", 1)[-1]
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="image_base64 is not valid base64",
        ) from exc


def _date_key(value: str) -> str:
    try:
        return parse_date_key(value).isoformat()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid date {value!r}, expected YYYY-MM-DD",
        ) from exc
