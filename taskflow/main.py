import logging

from fastapi import FastAPI

from taskflow.config import settings
from taskflow.routes.categories import router as categories_router
from taskflow.routes.comments import router as comments_router
from taskflow.routes.health import router as health_router
from taskflow.routes.me import router as me_router
from taskflow.routes.tasks import router as tasks_router
from taskflow.routes.teams import router as teams_router

def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="taskflow", version="0.1.0")
    app.include_router(health_router)
    app.include_router(me_router)
    app.include_router(teams_router)
    app.include_router(tasks_router)
    app.include_router(comments_router)
    app.include_router(categories_router)
    return app

app = create_app()
