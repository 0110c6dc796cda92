"""Application factory and app-wide configuration."""

import logging
from datetime import timedelta
from typing import Optional

from flask import Flask
from flask_cors import CORS

from backend.app.api.routes import api_bp
from backend.config import Settings
from backend.core.index_cache import IndexStatisticsCache
from backend.core.logging import setup_logging
from backend.core.market_data import YahooClient

logger = logging.getLogger(__name__)


def build_index_cache(settings: Settings) -> IndexStatisticsCache:
    client = YahooClient(
        base_url=settings.MARKET_DATA_BASE_URL,
        timeout=settings.MARKET_DATA_TIMEOUT,
    )
    return IndexStatisticsCache(
        client,
        ttl=timedelta(hours=settings.INDEX_CACHE_TTL_HOURS),
        interval=settings.MARKET_DATA_INTERVAL,
        range_period=settings.MARKET_DATA_RANGE,
    )


def create_app(
    settings: Optional[Settings] = None,
    cache: Optional[IndexStatisticsCache] = None,
) -> Flask:
    """Build the Flask app instance.

    Without an injected cache one is built from settings and, when
    INDEX_CACHE_PRELOAD is set, loaded before the app is returned.
    """
    settings = settings or Settings()
    setup_logging(settings.LOG_LEVEL, quiet_requests=not settings.is_development)

    app = Flask(__name__)
    CORS(
        app,
        resources={r"/api/*": {"origins": settings.CORS_ORIGINS}},
        supports_credentials=True,
    )

    if cache is None:
        cache = build_index_cache(settings)
        if settings.INDEX_CACHE_PRELOAD:
            cache.initialize()

    app.config["SETTINGS"] = settings
    app.extensions["index_cache"] = cache

    app.register_blueprint(api_bp, url_prefix="/api/v1")
    logger.info("app created env=%s indexes=%s", settings.APP_ENV, cache.symbols())
    return app
