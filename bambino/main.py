"""FastAPI app: lifespan, CORS, error handlers, router registration."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
import logging
import uvicorn
from .api.activities import router as activities_router
from .api.babies import router as babies_router
from .api.stats import router as stats_router
from .core.database import get_database
from .core.errors import BambinoError
from .core.settings import settings
from .services.validation import ActivityValidator

settings.validate()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


# Used by: FastAPI lifespan. Connect + ensure tables on startup, dispose on shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    db = get_database()
    await db.connect(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    await db.create_tables()

    yield

    await db.disconnect()


app = FastAPI(
    title="Bambino API",
    version="1.0.0",
    description="Bambino - Baby Activity Tracking API",
    lifespan=lifespan
)

app.state.validator = ActivityValidator()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BambinoError)
async def bambino_error_handler(request: Request, exc: BambinoError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/health")
async def health():
    return {"status": "ok", "database": get_database().is_connected}


app.include_router(activities_router)
app.include_router(babies_router)
app.include_router(stats_router)


if __name__ == "__main__":
    uvicorn.run("bambino.main:app", host=settings.HOST, port=settings.PORT)
