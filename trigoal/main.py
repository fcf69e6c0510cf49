"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Path
from fastapi.responses import FileResponse

from . import __version__
from .config import settings
from .dashboard.renderer import DashboardRenderer
from .diary.dates import current_diary_date, parse_date
from .diary.editor import DiaryEditor
from .diary.models import (
    BedtimeUpdate,
    DateSelection,
    DiaryEntry,
    EntryBody,
    EntryUpdate,
    Goal,
    GoalCreate,
    SleepSession,
    Stats,
)
from .storage.backends import KeyValueStore, create_store
from .storage.repository import DiaryStorage

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def _check_date(date: str):
    try:
        parse_date(date)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid diary date: {date}")


def create_app(
    store: Optional[KeyValueStore] = None,
    editor: Optional[DiaryEditor] = None,
    renderer: Optional[DashboardRenderer] = None,
) -> FastAPI:
    """
    Build the application around a storage backend.

    Args:
        store: Key-value backend, the configured one if omitted
        editor: Pre-built editor, mainly for tests
        renderer: Dashboard renderer

    Returns:
        FastAPI app
    """
    if editor is None:
        store = store or create_store(settings.storage_backend, settings.data_dir)
        editor = DiaryEditor(
            DiaryStorage(store),
            autosave_delay=settings.autosave_delay,
            history_days=settings.history_days,
        )
    storage = editor.storage
    renderer = renderer or DashboardRenderer(settings.image_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Pending edits would otherwise be lost on shutdown
        if editor.flush():
            logger.info("Flushed pending diary edits on shutdown")

    app = FastAPI(
        title="TriGoal Diary",
        description="Daily diary, bedtime log and three-tier goal tracker",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.editor = editor

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "TriGoal Diary",
            "version": __version__,
            "endpoints": {
                "session": "/api/session",
                "entries": "/api/entries",
                "goals": "/api/goals",
                "stats": "/api/stats",
                "dashboard": "/api/stats/dashboard",
                "sleep_session": "/api/sleep-session",
                "status": "/status",
            },
        }

    @app.get("/status")
    async def status():
        """Server status endpoint."""
        return {
            "status": "running",
            "version": __version__,
            "timestamp": datetime.now().isoformat(),
            "diary_date": current_diary_date(),
            "storage_backend": storage.store.name,
        }

    # Goals

    @app.get("/api/goals", response_model=list[Goal])
    async def list_goals():
        return editor.goals

    @app.post("/api/goals", response_model=Goal, status_code=201)
    async def create_goal(new_goal: GoalCreate):
        """Create a goal; tiers must be ordered easy <= hard <= insane."""
        return editor.add_goal(new_goal)

    @app.delete("/api/goals/{goal_id}")
    async def delete_goal(goal_id: str):
        """
        Delete a goal.

        Values logged under the goal stay in the stored entries.
        """
        if not editor.delete_goal(goal_id):
            raise HTTPException(status_code=404, detail=f"Goal not found: {goal_id}")
        return {"status": "success", "deleted": goal_id}

    # Entries

    @app.get("/api/entries", response_model=dict[str, DiaryEntry], response_model_exclude_none=True)
    async def list_entries():
        return storage.load_entries()

    @app.get("/api/entries/{date}", response_model=DiaryEntry, response_model_exclude_none=True)
    async def get_entry(date: str = Path(..., pattern=DATE_PATTERN)):
        """Stored entry for a date, or an unsaved default."""
        _check_date(date)
        return storage.get_entry(date)

    @app.put("/api/entries/{date}", response_model=DiaryEntry, response_model_exclude_none=True)
    async def put_entry(body: EntryBody, date: str = Path(..., pattern=DATE_PATTERN)):
        """Replace the whole entry for a date."""
        _check_date(date)
        return editor.replace_entry(body.for_date(date))

    # Editing session

    def _session_state() -> dict:
        return {
            "date": editor.date,
            "today": editor.today,
            "is_today": editor.is_today,
            "pending_save": editor.has_pending_save,
            "entry": editor.entry,
        }

    @app.get("/api/session")
    async def get_session():
        return _session_state()

    @app.post("/api/session/date")
    async def select_date(selection: DateSelection):
        """Navigate to a date, or shift by a number of days."""
        if selection.date is None and selection.days is None:
            raise HTTPException(status_code=422, detail="Provide a date or days")

        try:
            if selection.date is not None:
                editor.select_date(selection.date)
            else:
                editor.shift_date(selection.days)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return _session_state()

    @app.patch("/api/session/entry")
    async def update_entry(update: EntryUpdate):
        """Buffer an edit; it is saved after the autosave delay."""
        editor.update_entry(
            content=update.content,
            goals=update.goals,
            ai_reflection=update.ai_reflection,
        )
        return _session_state()

    @app.post("/api/session/goals/{goal_id}/toggle")
    async def toggle_check_in(goal_id: str):
        editor.toggle_check_in(goal_id)
        return _session_state()

    @app.post("/api/session/flush")
    async def flush():
        """Write buffered edits immediately."""
        flushed = editor.flush()
        return {"status": "success", "flushed": flushed}

    @app.post("/api/session/sleep-now")
    async def sleep_now():
        """Record bedtime as now; saved immediately."""
        editor.sleep_now()
        return _session_state()

    @app.put("/api/session/bedtime")
    async def set_bedtime(update: BedtimeUpdate):
        """Record a bedtime picked as HH:MM; saved immediately."""
        try:
            editor.set_bedtime(update.time)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=f"Invalid time: {e}")
        return _session_state()

    @app.post("/api/session/reflection")
    async def generate_reflection():
        text = await editor.generate_reflection()
        return {"status": "success", "reflection": text}

    # Stats

    @app.get("/api/stats", response_model=Stats)
    async def get_stats():
        return editor.stats

    @app.get("/api/stats/dashboard")
    async def get_dashboard():
        """Render the stats dashboard to PNG."""
        filename, file_path = renderer.render(editor.stats, editor.date)
        return FileResponse(file_path, media_type="image/png", filename=f"{filename}.png")

    # Sleep session

    @app.get("/api/sleep-session", response_model=SleepSession)
    async def get_sleep_session():
        return storage.load_sleep_session()

    @app.put("/api/sleep-session", response_model=SleepSession)
    async def put_sleep_session(session: SleepSession):
        storage.save_sleep_session(session)
        return session

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "trigoal.main:create_app",
        factory=True,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )
