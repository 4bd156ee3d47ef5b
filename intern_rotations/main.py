"""FastAPI application for the intern rotation scheduler."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import config, configure_logging
from .database import init_db
from .errors import SchedulerError
from .routers import activity, interns, rotations, settings, units

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    logger.info("Database ready at %s", config.DATABASE_URL)
    yield


app = FastAPI(
    title="Intern Rotation Scheduler",
    description="Round-robin unit rotations for interns, with auto-advance, extensions and coverage",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when allow_origins is "*"
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchedulerError)
async def scheduler_error_handler(request: Request, exc: SchedulerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(interns.router, prefix="/api/interns", tags=["interns"])
app.include_router(units.router, prefix="/api/units", tags=["units"])
app.include_router(rotations.router, prefix="/api/rotations", tags=["rotations"])
app.include_router(activity.router, prefix="/api/activity", tags=["activity"])
app.include_router(settings.router, prefix="/api/settings", tags=["settings"])


@app.get("/")
def root():
    return {"message": "Intern Rotation Scheduler API", "docs": "/docs"}


@app.get("/health")
def health():
    return {"status": "ok", "version": __version__}
