# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""ASGI type definitions for asgi-staticfs.

Scope and Message stay plain mappings: ASGI servers add their own keys and
the middleware only reads ``type``, ``path``, ``method`` and ``headers``.

Middleware is the composable shape used throughout the package: a callable
that receives the next application in the chain and returns a new one::

    def wrap(next_app: ASGIApp) -> ASGIApp: ...
"""

from typing import Any, Awaitable, Callable, MutableMapping

__all__ = ["Scope", "Message", "Receive", "Send", "ASGIApp", "Middleware"]

# ASGI Scope - connection metadata
Scope = MutableMapping[str, Any]

# ASGI Message - sent/received data
Message = MutableMapping[str, Any]

# ASGI Receive - callable to receive messages
Receive = Callable[[], Awaitable[Message]]

# ASGI Send - callable to send messages
Send = Callable[[Message], Awaitable[None]]

# ASGI Application - the main callable
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

# Middleware - wraps the next application
Middleware = Callable[[ASGIApp], ASGIApp]
