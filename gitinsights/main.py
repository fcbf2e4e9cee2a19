from fastapi import FastAPI

from gitinsights.api.routes import auth
from gitinsights.api.routes import chat
from gitinsights.api.routes import insights
from gitinsights.core.middleware import RateLimitMiddleware
from gitinsights.core.observability import configure_logging
from gitinsights.core.observability import init_sentry
from gitinsights.settings import Settings


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the API application from explicit settings."""

    app_settings = app_settings or Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    application = FastAPI(title="GitInsights")
    application.state.settings = app_settings
    application.add_middleware(
        RateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    application.include_router(insights.router)
    application.include_router(auth.router)
    application.include_router(chat.router)
    return application


app = create_app()
