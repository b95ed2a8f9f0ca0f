"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from protein_buddy.adapters.supabase_identity import IdentityError
from protein_buddy.api.models import (
    DailyIntakeModel,
    DayLogResponse,
    EditFoodRequest,
    FoodModel,
    GoalCalculationRequest,
    GoalCalculationResponse,
    ProteinGoalModel,
    SetProteinGoalRequest,
)
from protein_buddy.app_logging import configure_logging
from protein_buddy.containers import AppContainer
from protein_buddy.dates import format_day
from protein_buddy.services.goals import activity_label, calculate_protein_goal

WRITE_FAILED_DETAIL = "Could not save your changes. Please try again."

_BEARER_PREFIX = "bearer "


def _get_container(request: Request) -> AppContainer:
    return request.app.state.container


async def current_email(
    authorization: str | None = Header(default=None),
    container: AppContainer = Depends(_get_container),
) -> str:
    """Resolve the bearer token to the signed-in account's email."""
    if not authorization or not authorization.lower().startswith(_BEARER_PREFIX):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
        )
    access_token = authorization[len(_BEARER_PREFIX) :].strip()
    try:
        return container.identity.email_for_token(access_token)
    except IdentityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
        ) from exc


def _write_failed() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=WRITE_FAILED_DETAIL
    )


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(logging.DEBUG if container.settings.debug else logging.INFO)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(ValueError)
    async def invalid_input(request: Request, exc: ValueError) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/foods/search", dependencies=[Depends(current_email)])
    async def search_foods(q: str, request: Request) -> list[FoodModel]:
        """Search foods; an empty list means nothing matched."""
        state_container: AppContainer = request.app.state.container
        foods = await state_container.nutrition_service.search(q)
        return [FoodModel.from_food(food) for food in foods]

    @app.get("/foods/barcode/{code}", dependencies=[Depends(current_email)])
    async def food_by_barcode(code: str, request: Request) -> FoodModel:
        """Look up the food behind a scanned barcode."""
        state_container: AppContainer = request.app.state.container
        food = await state_container.nutrition_service.resolve_barcode(code)
        if food is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="not found"
            )
        return FoodModel.from_food(food)

    @app.get("/days")
    async def history(
        request: Request, email: str = Depends(current_email)
    ) -> list[DailyIntakeModel]:
        """Return every logged day, newest first."""
        state_container: AppContainer = request.app.state.container
        return [
            DailyIntakeModel.from_daily_intake(entry)
            for entry in state_container.ledger.fetch_history(email)
        ]

    @app.get("/days/{day}")
    async def day_log(
        day: date, request: Request, email: str = Depends(current_email)
    ) -> DayLogResponse:
        """Return the day's foods by meal with intake and goal progress."""
        state_container: AppContainer = request.app.state.container
        return DayLogResponse.from_day_log(
            state_container.ledger.fetch_day(email, format_day(day))
        )

    @app.post("/days/{day}/meals/{meal}/foods", status_code=status.HTTP_201_CREATED)
    async def log_food(
        day: date,
        meal: str,
        food: FoodModel,
        request: Request,
        email: str = Depends(current_email),
    ) -> FoodModel:
        """Log a food under a meal and remember it as a recent food."""
        state_container: AppContainer = request.app.state.container
        ledger = state_container.ledger
        logged = ledger.log_food(email, food.to_food(), meal, format_day(day))
        if logged is None:
            raise _write_failed()
        if not ledger.add_to_recent_foods(email, logged):
            logger.warning("Recent foods not updated for %s", email)
        return FoodModel.from_food(logged)

    @app.delete("/days/{day}/meals/{meal}/foods")
    async def remove_food(
        day: date,
        meal: str,
        food: FoodModel,
        request: Request,
        email: str = Depends(current_email),
    ) -> dict[str, str]:
        """Remove a logged entry; the body must be the stored entry."""
        state_container: AppContainer = request.app.state.container
        if not state_container.ledger.remove_food(
            email, food.to_food(), meal, format_day(day)
        ):
            raise _write_failed()
        return {"status": "ok"}

    @app.put("/days/{day}/meals/{meal}/foods")
    async def edit_food(
        day: date,
        meal: str,
        body: EditFoodRequest,
        request: Request,
        email: str = Depends(current_email),
    ) -> FoodModel:
        """Change the serving of a logged entry, optionally moving its meal."""
        state_container: AppContainer = request.app.state.container
        edited = state_container.ledger.edit_food(
            email,
            body.original.to_food(),
            meal,
            format_day(day),
            measure=body.measure.to_measure(),
            multiplier=body.multiplier,
            new_meal=body.new_meal,
        )
        if edited is None:
            raise _write_failed()
        return FoodModel.from_food(edited)

    @app.get("/recent-foods")
    async def recent_foods(
        request: Request, email: str = Depends(current_email)
    ) -> list[FoodModel]:
        """Return up to ten recently logged foods, newest first."""
        state_container: AppContainer = request.app.state.container
        return [
            FoodModel.from_food(food)
            for food in state_container.ledger.fetch_recent_foods(email)
        ]

    @app.get("/profile/protein-goal")
    async def protein_goal(
        request: Request, email: str = Depends(current_email)
    ) -> ProteinGoalModel:
        """Return the stored protein goal."""
        state_container: AppContainer = request.app.state.container
        return ProteinGoalModel(grams=state_container.ledger.fetch_protein_goal(email))

    @app.put("/profile/protein-goal")
    async def set_protein_goal(
        body: SetProteinGoalRequest,
        request: Request,
        email: str = Depends(current_email),
    ) -> ProteinGoalModel:
        """Store a new protein goal."""
        state_container: AppContainer = request.app.state.container
        if not state_container.ledger.set_protein_goal(email, body.grams):
            raise _write_failed()
        return ProteinGoalModel(grams=body.grams)

    @app.post("/profile/protein-goal/calculate")
    async def calculate_goal(
        body: GoalCalculationRequest,
        request: Request,
        email: str = Depends(current_email),
    ) -> GoalCalculationResponse:
        """Calculate a goal from body measurements and store it."""
        state_container: AppContainer = request.app.state.container
        grams = calculate_protein_goal(body.height_m, body.weight_kg, body.activity)
        if not state_container.ledger.set_protein_goal(email, grams):
            raise _write_failed()
        return GoalCalculationResponse(
            grams=grams, activity_label=activity_label(body.activity)
        )

    return app
