import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from workstay.config import get_settings
from workstay.controllers.admin import router as admin_router
from workstay.controllers.applications import router as applications_router
from workstay.controllers.health import router as health_router
from workstay.controllers.images import router as images_router
from workstay.controllers.notifications import router as notifications_router
from workstay.controllers.opportunities import router as opportunities_router
from workstay.errors import register_exception_handlers
from workstay.lifespan import cleanup_resources, setup_resources
from workstay.middleware import HTTPLogMiddleware


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources(get_settings())
    try:
        yield
    finally:
        await cleanup_resources(resources)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Workstay API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.debug.request:
        logging.getLogger("workstay.http").setLevel(logging.DEBUG)
        app.add_middleware(HTTPLogMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(opportunities_router)
    app.include_router(applications_router)
    app.include_router(images_router)
    app.include_router(admin_router)
    app.include_router(notifications_router)
    return app


app = create_app()
Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
