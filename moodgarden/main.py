from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from moodgarden.api.routes.auth import router as auth_router
from moodgarden.api.routes.stats import router as stats_router
from moodgarden.api.routes.system import router as system_router
from moodgarden.core.middleware import StatsRateLimitMiddleware
from moodgarden.core.observability import configure_logging
from moodgarden.core.observability import init_sentry
from moodgarden.db import create_session_factory
from moodgarden.settings import Settings


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API application from explicit settings."""

    app_settings = settings or Settings()
    configure_logging(app_settings.log_level)
    init_sentry(app_settings)

    app = FastAPI(title="GitHub Mood Garden")
    app.state.settings = app_settings
    app.state.session_factory = create_session_factory(app_settings.database_url)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[app_settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        StatsRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )

    app.include_router(system_router)
    app.include_router(auth_router)
    app.include_router(stats_router)
    return app


app = create_app()
