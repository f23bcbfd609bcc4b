"""Litestar application factory."""

from __future__ import annotations


from litestar import Litestar
from litestar.datastructures import State
from litestar.di import Provide
from litestar.openapi import OpenAPIConfig
from litestar.config.compression import CompressionConfig
from litestar.middleware.logging import LoggingMiddlewareConfig

from visitlog.config.settings import Settings, get_settings
from visitlog.server import plugins
from visitlog.server.lifecycle import on_startup, on_shutdown
from visitlog.server.routes import get_route_handlers
from visitlog.api.dependencies import provide_visit_service


def create_app(settings: Settings | None = None) -> Litestar:
    """Build the visit logging application.

    The pipeline itself is wired in ``on_startup`` from ``app.state.settings``,
    so tests can pass their own settings here.

    Args:
        settings: Settings to use. Defaults to the cached environment settings.

    Returns:
        Litestar: Configured application instance
    """
    settings = settings or get_settings()

    sqlalchemy_config = plugins.create_sqlalchemy_config(settings.database)

    # Configure OpenAPI
    openapi_config = OpenAPIConfig(
        title=settings.name,
        version=settings.version,
        description=settings.description,
        create_examples=True,
    )

    compression_config = CompressionConfig(
        backend="brotli",
        minimum_size=1000,
        brotli_quality=4,
    )

    logging_middleware_config = LoggingMiddlewareConfig(
        # Consent cookies and admin credentials stay out of request logs
        request_cookies_to_obfuscate={settings.privacy.consent_cookie_name, "session"},
        request_headers_to_obfuscate={"authorization", "cookie", "x-forwarded-for"},
    )

    app = Litestar(
        debug=settings.debug,
        route_handlers=get_route_handlers(),
        on_startup=[on_startup],
        on_shutdown=[on_shutdown],
        plugins=[plugins.create_sqlalchemy_plugin(sqlalchemy_config)],
        dependencies={
            "visit_service": Provide(provide_visit_service, sync_to_thread=False),
        },
        state=State({"settings": settings, "sqlalchemy_config": sqlalchemy_config}),
        logging_config=plugins.create_logging_config(settings),
        openapi_config=openapi_config,
        compression_config=compression_config,
        middleware=[logging_middleware_config.middleware],
    )

    return app
