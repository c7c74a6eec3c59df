from contextlib import asynccontextmanager
import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.errors import EngineError, http_status_for
from app.core.logging import configure_logging
from app.routers.auth import router as auth_router
from app.routers.material_requests import router as material_requests_router
from app.routers.materials import router as materials_router
from app.routers.outbox import router as outbox_router
from app.routers.projects import router as projects_router
from app.routers.services import router as services_router
from app.routers.tasks import router as tasks_router
from app.routers.users import router as users_router
from app.services.outbox_worker import start_outbox_worker_task

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()

    task = start_outbox_worker_task()
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


app = FastAPI(
    title="Construction Engine",
    lifespan=lifespan,
)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    # Routes map engine errors themselves; this covers anything that slips through
    return JSONResponse(
        status_code=http_status_for(exc),
        content={"detail": str(exc), "code": exc.code},
    )


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception(
            "Unhandled exception",
            extra={"method": request.method, "path": request.url.path},
        )
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(projects_router)
app.include_router(tasks_router)
app.include_router(services_router)
app.include_router(materials_router)
app.include_router(material_requests_router)
app.include_router(outbox_router)


@app.get("/")
def root():
    return {"status": "Construction Engine running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
