import datetime
import logging
import os
from fastapi import (
    FastAPI,
    HTTPException,
    Response,
    APIRouter,
    Request,
)
from fastapi.concurrency import run_in_threadpool
from db import SettingsRepository, SlotRepository
from config import APP_VERSION, DEFAULT_DB_PATH, DEFAULT_SETTINGS_PATH
from exercise_schema import (
    EXERCISE_TYPES,
    INTENSITY_LEVELS,
    ExerciseCreate,
    ExerciseUpdate,
)
from exercise_store import ExerciseStore, StoreResult
from exchange_service import ExchangeService
from stats_service import StatisticsService
from tools import DateTools

logger = logging.getLogger(__name__)


class ExerciseAPI:
    """Provides REST endpoints for exercise logging."""

    def __init__(
        self,
        db_path: str = DEFAULT_DB_PATH,
        yaml_path: str = DEFAULT_SETTINGS_PATH,
    ) -> None:
        self.db_path = db_path
        self.settings = SettingsRepository(db_path, yaml_path)
        config = self.settings.all_settings()
        self.slots = SlotRepository(db_path, capacity=config["slot_capacity"])
        self.store = ExerciseStore(
            self.slots,
            storage_key=config["storage_key"],
            timezone=config["timezone"],
        )
        self.statistics = StatisticsService(
            self.store,
            week_start=config["week_start"],
            timezone=config["timezone"],
        )
        self.exchange = ExchangeService(
            self.store,
            indent=config["export_indent"],
            timezone=config["timezone"],
        )
        self.app = FastAPI(
            title="Exercise API",
            description="REST API for exercise logging and statistics",
            version=APP_VERSION,
        )
        self.app.state.settings = self.settings
        self._setup_routes()

    @staticmethod
    def _raise_for(result: StoreResult) -> None:
        if result.not_found:
            raise HTTPException(status_code=404, detail=result.message)
        if not result.success:
            raise HTTPException(status_code=500, detail=result.message)

    def _reload_statistics(self) -> None:
        config = self.settings.all_settings()
        self.store.tz = DateTools.zone(config["timezone"])
        self.exchange.tz = self.store.tz
        self.statistics = StatisticsService(
            self.store,
            week_start=config["week_start"],
            timezone=config["timezone"],
        )

    def _setup_routes(self) -> None:
        exercises_router = APIRouter(prefix="/exercises", tags=["Exercises"])
        charts_router = APIRouter(prefix="/charts", tags=["Charts"])
        metadata_router = APIRouter(prefix="/metadata", tags=["Metadata"])

        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify API and storage connectivity.",
        )
        def health():
            """Return API and storage connection status."""
            try:
                self.slots.keys()
                return {"status": "ok"}
            except Exception as e:  # pragma: no cover - connectivity failure
                raise HTTPException(status_code=500, detail=str(e))

        @exercises_router.post("")
        def create_exercise(exercise: ExerciseCreate):
            result = self.store.create(exercise.to_fields())
            self._raise_for(result)
            return result.value

        @exercises_router.get("")
        def list_exercises(
            type: str = None,
            intensity_level: str = None,
            start: str = None,
            end: str = None,
        ):
            try:
                return self.store.fetch_all(type, intensity_level, start, end)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

        @exercises_router.delete("")
        def clear_exercises():
            self._raise_for(self.exchange.clear_all())
            return {"status": "cleared"}

        @exercises_router.get("/by_date")
        def exercises_by_date():
            return self.store.workouts_by_date()

        @exercises_router.get("/{exercise_id}")
        def get_exercise(exercise_id: str):
            exercise = self.store.get_by_id(exercise_id)
            if exercise is None:
                raise HTTPException(status_code=404, detail="exercise not found")
            return exercise

        @exercises_router.put("/{exercise_id}")
        def update_exercise(exercise_id: str, updates: ExerciseUpdate):
            result = self.store.update(exercise_id, updates.to_fields())
            self._raise_for(result)
            return result.value

        @exercises_router.delete("/{exercise_id}")
        def delete_exercise(exercise_id: str):
            self._raise_for(self.store.delete(exercise_id))
            return {"status": "deleted"}

        @self.app.get("/stats")
        def get_stats():
            return self.statistics.overview()

        @self.app.get("/stats/streaks")
        def get_streaks():
            return self.statistics.streaks()

        @charts_router.get("/weekly_duration")
        def weekly_duration_chart():
            return self.statistics.weekly_duration_chart()

        @charts_router.get("/monthly_workouts")
        def monthly_workout_chart():
            return self.statistics.monthly_workout_chart()

        @charts_router.get("/monthly_calories")
        def monthly_calories_chart():
            return self.statistics.monthly_calories_chart()

        @charts_router.get("/types")
        def exercise_type_chart():
            return self.statistics.exercise_type_chart()

        @charts_router.get("/intensity")
        def intensity_chart():
            return self.statistics.intensity_chart()

        @self.app.get("/export")
        def export_data():
            now = datetime.datetime.now(datetime.timezone.utc)
            return Response(
                content=self.exchange.export_json(now),
                media_type="application/json",
                headers={
                    "Content-Disposition": f"attachment; filename={self.exchange.export_filename(now)}"
                },
            )

        @self.app.post("/import")
        async def import_data(request: Request):
            body = await request.body()
            result = await run_in_threadpool(self.exchange.import_data, body)
            if not result.success:
                logger.warning("Import rejected: %s", result.message)
                raise HTTPException(status_code=400, detail=result.message)
            return result.to_dict()

        @metadata_router.get("/types")
        def list_exercise_types():
            return EXERCISE_TYPES

        @metadata_router.get("/intensity_levels")
        def list_intensity_levels():
            return INTENSITY_LEVELS

        @self.app.get("/settings/general")
        def get_general_settings():
            return self.settings.all_settings()

        @self.app.post("/settings/general")
        def update_general_settings(
            week_start: str = None,
            timezone: str = None,
        ):
            try:
                if week_start is not None:
                    self.settings.set_text("week_start", week_start)
                if timezone is not None:
                    self.settings.set_text("timezone", timezone)
                self._reload_statistics()
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"status": "updated"}

        self.app.include_router(exercises_router)
        self.app.include_router(charts_router)
        self.app.include_router(metadata_router)


def create_app() -> FastAPI:
    api = ExerciseAPI(
        db_path=os.environ.get("DB_PATH", DEFAULT_DB_PATH),
        yaml_path=os.environ.get("SETTINGS_PATH", DEFAULT_SETTINGS_PATH),
    )
    return api.app


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    level = app.state.settings.all_settings()["log_level"]
    logging.basicConfig(level=level)
    uvicorn.run(app)
