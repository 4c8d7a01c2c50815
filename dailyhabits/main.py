"""
FastAPI application factory
"""
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.sessions import SessionMiddleware

from dailyhabits.config import get_settings
from dailyhabits.infrastructure.db.session import check_db_connection, dispose_engine
from dailyhabits.application.common import HabitNotFoundError, HabitValidationError, TimerNotFoundError
from dailyhabits.application.scheduler import shutdown_scheduler, start_scheduler
from dailyhabits.application.stats_cache import StatsCache
from dailyhabits.api.v1 import calendar, completions, habits, stats, timers

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    start_scheduler(app.state.stats_cache)
    try:
        yield
    finally:
        shutdown_scheduler()
        dispose_engine()


def create_app() -> FastAPI:
    """
    Application factory - creates and configures the FastAPI app

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="DailyHabits",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.stats_cache = StatsCache()

    # Error-logging middleware: catches ALL exceptions including sync routes
    from starlette.middleware.base import BaseHTTPMiddleware
    from starlette.responses import Response

    class ErrorLoggingMiddleware(BaseHTTPMiddleware):
        async def dispatch(self, request, call_next):
            try:
                response = await call_next(request)
                return response
            except Exception:
                tb_str = traceback.format_exc()
                logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
                return Response(content="Internal Server Error", status_code=500)

    app.add_middleware(ErrorLoggingMiddleware)

    # Middleware
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY
    )

    # Domain errors -> {"error": ...}
    @app.exception_handler(HabitNotFoundError)
    async def habit_not_found_handler(request: Request, exc: HabitNotFoundError):
        return JSONResponse(status_code=404, content={"error": "Not found"})

    @app.exception_handler(HabitValidationError)
    async def validation_error_handler(request: Request, exc: HabitValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(TimerNotFoundError)
    async def timer_not_found_handler(request: Request, exc: TimerNotFoundError):
        return JSONResponse(status_code=409, content={"error": "No timer found"})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    # Routers
    app.include_router(timers.router)  # /habits/timers before /habits/{habit_id}
    app.include_router(habits.router)
    app.include_router(completions.router)
    app.include_router(stats.router)
    app.include_router(calendar.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (checks the database is reachable)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "dailyhabits.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
