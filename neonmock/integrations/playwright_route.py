"""Playwright ``page.route`` adapter for the fetch interceptor.

Playwright is optional; the handler only relies on the ``route``/``request``
objects Playwright passes in.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Callable

from neonmock.core.errors import MockHarnessError
from neonmock.integrations.fetch_interceptor import FetchInterceptor, MockRequest

if TYPE_CHECKING:  # pragma: no cover
    from playwright.sync_api import BrowserContext, Page, Request, Route

DEFAULT_URL_GLOB = "**/sql"


def route_handler(interceptor: FetchInterceptor) -> Callable[["Route", "Request"], None]:
    """Return a route handler that fulfils mocked SQL requests."""

    def _handler(route: Route, request: Request) -> None:
        mock_request = MockRequest(
            url=request.url,
            method=request.method,
            headers=dict(request.headers),
            body=request.post_data_buffer,
        )
        try:
            result = interceptor.handle(mock_request)
        except MockHarnessError as exc:
            # Already recorded in interceptor.failures; assert_clean() re-raises it.
            route.fulfill(
                status=500,
                content_type="application/json",
                body=json.dumps({"message": str(exc)}, ensure_ascii=False),
            )
            return
        if result is None:
            route.fallback()
            return
        route.fulfill(status=result.status, headers=result.headers, body=result.body)

    return _handler


def install_route(
    target: Page | BrowserContext | Any,
    interceptor: FetchInterceptor,
    url_glob: str = DEFAULT_URL_GLOB,
) -> Callable[["Route", "Request"], None]:
    """Register the interceptor on a page or browser context."""

    handler = route_handler(interceptor)
    target.route(url_glob, handler)
    return handler


__all__ = ["DEFAULT_URL_GLOB", "install_route", "route_handler"]
