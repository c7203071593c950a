"""FastAPI application entry point."""
import os

# Quest windows and schedules are defined in UTC
os.environ['TZ'] = 'UTC'

import asyncio
import time

if hasattr(time, "tzset"):
    time.tzset()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from contextlib import asynccontextmanager

from quest_tracker.config import get_settings
from quest_tracker.version import APP_VERSION
from quest_tracker.routers import health, quests

# Create logs directory if it doesn't exist
logs_dir = Path("logs")
logs_dir.mkdir(exist_ok=True)

log_file = logs_dir / "quest_tracker.log"
sql_log_file = logs_dir / "quest_tracker_sql.log"

# Rotating file handler for general logs (1MB max size, keep 5 backup files)
rotating_handler = RotatingFileHandler(
    log_file,
    maxBytes=1024 * 1024,
    backupCount=5,
    encoding='utf-8',
)
rotating_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

# Rotating file handler for SQL logs (1MB max size, keep 5 backup files)
sql_rotating_handler = RotatingFileHandler(
    sql_log_file,
    maxBytes=1024 * 1024,
    backupCount=5,
    encoding='utf-8',
)
sql_rotating_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

# Force=True overrides any existing configuration (e.g., from uvicorn)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        rotating_handler,
    ],
    force=True,
)

logger = logging.getLogger(__name__)

uvicorn_access_logger = logging.getLogger("uvicorn.access")
uvicorn_access_logger.setLevel(logging.INFO)
if rotating_handler not in uvicorn_access_logger.handlers:
    uvicorn_access_logger.addHandler(rotating_handler)

# SQLAlchemy engine logs go to their own file only
sqlalchemy_logger = logging.getLogger("sqlalchemy.engine.Engine")
sqlalchemy_logger.handlers.clear()
sqlalchemy_logger.addHandler(sql_rotating_handler)
sqlalchemy_logger.setLevel(logging.WARNING)
sqlalchemy_logger.propagate = False


class SQLTransactionFilter(logging.Filter):
    def filter(self, record):
        if record.levelno == logging.INFO and hasattr(record, 'getMessage'):
            message = record.getMessage()

            if any(keyword in message for keyword in ['ROLLBACK', 'BEGIN', 'COMMIT', 'generated in']):
                return False

            # Collapse multi-line statements onto one line
            if any([kw in message for kw in ['SELECT', 'UPDATE', 'INSERT']]):
                record.msg = ' '.join(message.split())
                record.args = ()

        return True


sqlalchemy_logger.addFilter(SQLTransactionFilter())

settings = get_settings()


async def quest_evaluation_cycle():
    """Background task re-evaluating every known subject's quests on the configured slots."""
    from quest_tracker.tasks.quest_maintenance import schedule_quest_evaluation

    if not settings.evaluation_enabled:
        logger.info("Quest evaluation is disabled, not starting cycle")
        return

    await schedule_quest_evaluation()


async def daily_reset_cycle():
    """Background task clearing the daily completion flags once a day."""
    from quest_tracker.tasks.quest_maintenance import schedule_daily_reset

    if not settings.daily_reset_enabled:
        logger.info("Daily reset is disabled, not starting cycle")
        return

    await schedule_daily_reset()


async def check_indexer():
    from quest_tracker.services.indexer_client import get_indexer_client

    if not settings.indexer_base_url:
        logger.warning("INDEXER_BASE_URL is not set; quest evaluation will skip every quest")
        return

    if await get_indexer_client().health_check():
        logger.info(f"Indexer health check passed at {settings.indexer_base_url}")
    else:
        logger.error(f"Indexer health check failed at {settings.indexer_base_url}")
        logger.error("Quest evaluation will skip quests until the indexer is available")


@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    """Manage application startup and shutdown tasks."""
    logger.info("=" * 60)
    logger.info("Quest Tracker API Starting")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Database: {settings.database_url.split('@')[-1] if '@' in settings.database_url else 'SQLite'}")
    logger.info("=" * 60)

    await check_indexer()

    evaluation_task = None
    reset_task = None

    try:
        evaluation_task = asyncio.create_task(quest_evaluation_cycle())
        logger.info(
            f"Quest evaluation cycle task started (every {settings.evaluation_interval_minutes} minutes "
            f"from minute {settings.evaluation_offset_minutes})"
        )
    except Exception as e:
        logger.error(f"Failed to start quest evaluation cycle: {e}")

    try:
        reset_task = asyncio.create_task(daily_reset_cycle())
        logger.info("Daily reset cycle task started")
    except Exception as e:
        logger.error(f"Failed to start daily reset cycle: {e}")

    try:
        yield
    finally:
        logger.info("Shutting down background tasks...")

        tasks_to_cancel = []
        if evaluation_task:
            evaluation_task.cancel()
            tasks_to_cancel.append(("Quest evaluation", evaluation_task))
        if reset_task:
            reset_task.cancel()
            tasks_to_cancel.append(("Daily reset", reset_task))

        for task_name, task in tasks_to_cancel:
            try:
                await asyncio.wait_for(task, timeout=2.0)
            except asyncio.CancelledError:
                logger.info(f"{task_name} task cancelled")
            except asyncio.TimeoutError:
                logger.warning(f"{task_name} task did not cancel within timeout, forcing shutdown")
            except Exception as e:
                logger.error(f"Error cancelling {task_name} task: {e}")

        try:
            from quest_tracker.services.indexer_client import get_indexer_client
            await get_indexer_client().close()
            logger.info("Indexer client session closed")
        except Exception as e:
            logger.error(f"Error closing indexer client: {e}")

        logger.info("Quest Tracker API Shutting Down... Goodbye!")


app = FastAPI(
    title="Quest Tracker API",
    description="Quest completion tracking and leaderboards",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report missing or malformed query parameters."""
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    errors = []
    for error in exc.errors():
        loc = error.get("loc", [])
        field_path = " -> ".join(str(x) for x in loc[1:]) if len(loc) > 1 else "unknown field"
        errors.append({
            "field": field_path,
            "message": error.get("msg", "Validation error"),
            "type": error.get("type", "unknown"),
        })

    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": errors,
        }
    )


app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=settings.cors_allowed_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(quests.router)
