# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Middleware package - ASGI middleware for asgi-staticfs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..types import ASGIApp, Middleware, Receive, Scope, Send


class BaseMiddleware(ABC):
    """Base class for middleware. Holds the next application in the chain."""

    __slots__ = ("app",)

    def __init__(self, app: ASGIApp, **kwargs: Any) -> None:
        """Initialize middleware with wrapped app.

        Args:
            app: The ASGI app to wrap (next in chain).
            **kwargs: Middleware-specific configuration.
        """
        self.app = app

    @abstractmethod
    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None: ...


def middleware_chain(app: ASGIApp, *wrappers: Middleware) -> ASGIApp:
    """Build a middleware chain around app.

    The first wrapper is the outermost one, so it sees requests first::

        middleware_chain(endpoint, static_handler(cfg), other_handler(...))

    Args:
        app: The innermost ASGI app.
        *wrappers: Callables taking the next app and returning a new app.

    Returns:
        Wrapped ASGI app.
    """
    # Build chain (reversed: first in order = outermost wrapper)
    for wrap in reversed(wrappers):
        app = wrap(app)
    return app


from .static import StaticFileMiddleware, static_handler  # noqa: E402

__all__ = [
    "BaseMiddleware",
    "StaticFileMiddleware",
    "middleware_chain",
    "static_handler",
]
