"""httpx transports that answer mocked SQL requests in-process.

Requests the interceptor does not claim are forwarded to a fallback transport
(the real network by default).
"""

from __future__ import annotations

import httpx

from neonmock.integrations.fetch_interceptor import FetchInterceptor, MockRequest, MockResponse


def _to_mock_request(request: httpx.Request, body: bytes) -> MockRequest:
    return MockRequest(
        url=str(request.url),
        method=request.method,
        headers=dict(request.headers),
        body=body,
    )


def _to_httpx_response(result: MockResponse, request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        status_code=result.status,
        headers=result.headers,
        content=result.body,
        request=request,
    )


class NeonMockTransport(httpx.BaseTransport):
    def __init__(self, interceptor: FetchInterceptor, fallback: httpx.BaseTransport | None = None) -> None:
        self.interceptor = interceptor
        self._fallback = fallback

    @property
    def fallback(self) -> httpx.BaseTransport:
        if self._fallback is None:
            self._fallback = httpx.HTTPTransport()
        return self._fallback

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        result = self.interceptor.handle(_to_mock_request(request, request.read()))
        if result is None:
            return self.fallback.handle_request(request)
        return _to_httpx_response(result, request)

    def close(self) -> None:
        if self._fallback is not None:
            self._fallback.close()


class AsyncNeonMockTransport(httpx.AsyncBaseTransport):
    def __init__(
        self, interceptor: FetchInterceptor, fallback: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self.interceptor = interceptor
        self._fallback = fallback

    @property
    def fallback(self) -> httpx.AsyncBaseTransport:
        if self._fallback is None:
            self._fallback = httpx.AsyncHTTPTransport()
        return self._fallback

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        body = await request.aread()
        result = self.interceptor.handle(_to_mock_request(request, body))
        if result is None:
            return await self.fallback.handle_async_request(request)
        return _to_httpx_response(result, request)

    async def aclose(self) -> None:
        if self._fallback is not None:
            await self._fallback.aclose()


__all__ = ["AsyncNeonMockTransport", "NeonMockTransport"]
