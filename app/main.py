import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.admin.router import router as admin_router
from app.api.v1.assignments.router import router as assignments_router
from app.api.v1.auth.router import router as auth_router
from app.api.v1.classes.classes_router import router as classes_router
from app.api.v1.settings.router import router as settings_router
from app.api.v1.teachers.router import router as teachers_router
from app.api.v1.utils.router import router as utils_router
from app.core.config import settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="School Load Tracker")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(utils_router)
    app.include_router(classes_router)
    app.include_router(assignments_router)
    app.include_router(teachers_router)
    app.include_router(settings_router)
    app.include_router(admin_router)

    return app


app = create_app()
