from dotenv import load_dotenv
import os

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from uniconnect.core.config import Settings, get_settings
from uniconnect.core.database import Database

# ───────────────── ROUTER IMPORTS ─────────────────
from uniconnect.routes.students import router as students_router
from uniconnect.routes.admin_students import router as admin_students_router
from uniconnect.routes.otp import router as otp_router
from uniconnect.routes.settings import router as settings_router
from uniconnect.routes.settings import admin_router as admin_settings_router

logger = logging.getLogger("uniconnect")


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# ───────── ERROR HANDLERS ─────────

def _sanitize(obj):
    if isinstance(obj, (bytes, bytearray)):
        return f"<bytes:{len(obj)}>"
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, Exception):
        return str(obj)
    return obj


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Missing or malformed fields are a plain 400 for this API
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(_sanitize(exc.errors()))},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ───────────────── LIFESPAN ─────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    if not settings.ADMIN_SECRET_KEY:
        logger.warning("ADMIN_SECRET_KEY is not set; admin routes will answer 500")

    # a pre-built Database (tests) is reused as is
    database = getattr(app.state, "database", None)
    if database is None:
        database = Database(settings.DATABASE_URL, echo=settings.DEBUG)
        app.state.database = database
    await database.init()

    yield

    await database.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="UniConnect API",
        description="Graduation project team matching: profiles, moderation, OTP self-service edits",
        version="1.0.0",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    # routes read config through Depends(get_settings); pin them to this instance
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ───────────────── CORS ─────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins_list or ["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ───────────────── ROUTES ─────────────────
    app.include_router(students_router, prefix="/api")
    app.include_router(admin_students_router, prefix="/api")
    app.include_router(otp_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")
    app.include_router(admin_settings_router, prefix="/api")

    # ───────────────── HEALTH ─────────────────
    @app.get("/", tags=["Health"])
    async def root():
        return {
            "status": "ok",
            "app": "UniConnect API",
            "env": settings.APP_ENV,
        }

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("uniconnect.main:app", host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
