import logging
from typing import Dict

from fastapi import Depends, FastAPI

from .config import Settings, get_settings
from .logging_config import configure_logging
from .planning_routes import router as planning_router

settings_snapshot = get_settings()
configure_logging(settings_snapshot)
logger = logging.getLogger(__name__)
app = FastAPI(title="Study Pacer", version="0.1.0")
app.include_router(planning_router)

logger.info("Study pacer starting with persistence mode: %s", settings_snapshot.persistence_mode)
logger.info("Completion attribution policy: %s", settings_snapshot.completion_attribution)


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    return {"status": "ok", "timezone": settings.timezone}
