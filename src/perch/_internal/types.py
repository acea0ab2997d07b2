"""Type aliases shared across perch modules.

The raw ASGI aliases stay internal: only the handler, sender and App
touch ASGI messages. Everything else works with ``Request`` and
responses.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

# ASGI 3 callables
Scope: TypeAlias = MutableMapping[str, Any]
Message: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[Message]]
Send: TypeAlias = Callable[[Message], Awaitable[None]]

# Route endpoint; arguments are injected from its signature
Handler: TypeAlias = Callable[..., Any]

# Error handler: takes (), (request) or (request, exc)
ErrorHandler: TypeAlias = Callable[..., Any]

# Startup or shutdown hook, sync or async, no arguments
Hook: TypeAlias = Callable[[], Any]
