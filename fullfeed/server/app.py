"""
HTTP Server
===========

aiohttp application exposing the proxy:

    GET /?url=<feedUrl>&selector=<css>&selectorText=<substring>
    GET /health
"""

from typing import Optional

from aiohttp import web

from ..config.settings import get_settings
from ..enrichment.link_resolver import SelectorConfig
from ..processing.pipeline import FeedProxy
from ..utils.exceptions import SourceFeedError, ValidationError, handle_exception
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator

PROXY_KEY = web.AppKey("proxy", FeedProxy)

logger = get_logger_for_component("server")


def selector_config_from_query(query) -> Optional[SelectorConfig]:
    """Build the request's SelectorConfig; selectorText alone is ignored."""
    selector = (query.get("selector") or "").strip()
    if not selector:
        return None
    selector_text = query.get("selectorText") or None
    return SelectorConfig(selector=selector, selector_text=selector_text)


async def handle_feed(request: web.Request) -> web.Response:
    """Render the full-content version of the feed named by ``?url=``."""
    try:
        feed_url = URLValidator.validate_feed_url(request.query.get("url"))
    except ValidationError as e:
        return web.Response(status=400, text=e.user_message)

    selector_config = selector_config_from_query(request.query)
    proxy = request.app[PROXY_KEY]

    try:
        body = await proxy.render(feed_url, selector_config)
    except SourceFeedError as e:
        logger.warning(f"Source feed error for {feed_url}: {e}", extra=e.to_dict())
        return web.Response(status=502, text=e.user_message)
    except Exception as e:
        error = handle_exception(e, logger, "render feed", {"feed_url": feed_url})
        return web.Response(status=500, text=error.user_message)

    return web.Response(text=body, content_type="text/xml")


async def handle_health(request: web.Request) -> web.Response:
    proxy = request.app[PROXY_KEY]
    stats = proxy.content_cache.stats()
    return web.json_response({"status": "ok", "cache_entries": stats["entries"]})


def create_app(proxy: Optional[FeedProxy] = None) -> web.Application:
    """Build the aiohttp application.

    Args:
        proxy: Feed proxy to serve (a default one is built from settings)
    """
    app = web.Application()
    app[PROXY_KEY] = proxy or FeedProxy()
    app.router.add_get("/", handle_feed)
    app.router.add_get("/health", handle_health)
    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the proxy until interrupted."""
    settings = get_settings()
    host = host or settings.server.host
    port = port or settings.server.port

    logger.info(f"Starting {settings.app_name} {settings.version} on {host}:{port}")
    web.run_app(create_app(), host=host, port=port, print=None)
