import logging

from fastapi import FastAPI

from .routes.health import router as health_router
from .routes.tags import router as tags_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(title="Bulk Tagger")
app.include_router(tags_router)  # /tags: preview, start run, status check
app.include_router(health_router)
