# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Static Files Middleware.

Claims every HTTP request whose path starts with the configured prefix and
serves it from a file store; everything else goes to the next application.

A claimed path never reaches the next application, not even when the file
is missing: the 404 from the file server is the final answer.

Serving:
    1. Root the store at config.root (once, at construction).
       An invalid root answers every claimed request with 500 and the
       error message as plain-text body.
    2. Add "Cache-Control: public, max-age=<seconds>" to non-error
       responses when config.cache_duration is positive.
    3. Strip the prefix and delegate to FileServer.

Example:
    store = DirectoryFileStore("./assets")
    app = middleware_chain(
        api_app,
        static_handler(StaticConfig(store=store, root="static", prefix="/static")),
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, MutableMapping

from . import BaseMiddleware
from ..exceptions import FilesystemRootingError
from ..fileserver import FileServer, send_error, strip_prefix
from ..filestore import sub_store

if TYPE_CHECKING:
    from ..config import StaticConfig
    from ..types import ASGIApp, Middleware, Receive, Scope, Send

__all__ = ["StaticFileMiddleware", "static_handler"]


class StaticFileMiddleware(BaseMiddleware):
    """Static files middleware - serves a file store below a URL prefix.

    Attributes:
        config: Normalized StaticConfig (default logger installed if needed).
    """

    __slots__ = ("config", "_server", "_rooting_error", "_cache_control")

    def __init__(self, app: ASGIApp, config: StaticConfig, **kwargs: Any) -> None:
        """Initialize static middleware.

        Args:
            app: Next ASGI application in the middleware chain.
            config: Static configuration.
            **kwargs: Additional arguments passed to BaseMiddleware.
        """
        super().__init__(app, **kwargs)
        self.config = config.normalized()
        self._server: ASGIApp | None = None
        self._rooting_error: FilesystemRootingError | None = None
        try:
            view = sub_store(self.config.store, self.config.root)
        except FilesystemRootingError as e:
            self._rooting_error = e
        else:
            self._server = strip_prefix(self.config.prefix, FileServer(view))

        max_age = self.config.max_age
        self._cache_control = (
            f"public, max-age={max_age}".encode("latin-1") if max_age is not None else None
        )

    def _debug(self, msg: str, *args: Any) -> None:
        if self.config.debug and self.config.logger is not None:
            self.config.logger.debug(msg, *args)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI interface - serve static files or pass through."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        if path.startswith(self.config.prefix):
            self._debug("Serving static file: %s", path)
            await self._serve(scope, receive, send)
        else:
            self._debug("Passing request to next handler: %s", path)
            await self.app(scope, receive, send)

    async def _serve(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Serve a claimed request from the rooted store."""
        if self._server is None:
            self._debug("Error creating sub-filesystem: %s", self._rooting_error)
            await send_error(send, 500, str(self._rooting_error))
            return

        if self._cache_control is None:
            await self._server(scope, receive, send)
            return

        cache_control = self._cache_control

        async def send_with_cache(message: MutableMapping[str, Any]) -> None:
            if message["type"] == "http.response.start" and message.get("status", 200) < 400:
                headers = [
                    (name, value)
                    for name, value in message.get("headers", [])
                    if name.lower() != b"cache-control"
                ]
                headers.append((b"cache-control", cache_control))
                message = {**message, "headers": headers}
            await send(message)

        await self._server(scope, receive, send_with_cache)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"StaticFileMiddleware(prefix={self.config.prefix!r}, "
            f"root={self.config.root!r}, store={self.config.store!r})"
        )


def static_handler(config: StaticConfig) -> Middleware:
    """Return a middleware serving config.store below config.prefix.

    The default logger is installed here, once, so every app wrapped by the
    returned callable shares this handler's logger.
    """
    config = config.normalized()

    def wrap(app: ASGIApp) -> ASGIApp:
        return StaticFileMiddleware(app, config)

    return wrap
