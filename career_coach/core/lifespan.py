from contextlib import asynccontextmanager
import logging

from career_coach.core.config import settings
from career_coach.core.store import CoachStore
from career_coach.core.thresholds import get_pipeline_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    # Fail fast on a broken pipeline config instead of on the first request.
    get_pipeline_config()

    store = getattr(app.state, "store", None)
    owns_store = store is None
    if owns_store:
        store = CoachStore(settings.store_db_path)
        app.state.store = store
    logger.info("coach_store_ready path=%s", store.db_path)

    yield

    if owns_store:
        store.close()
        app.state.store = None
