"""Call user callables that may be sync or async.

Route handlers, error handlers, lifecycle hooks and ``on_prepare_response``
callbacks can all be ``def`` or ``async def``. The awaitable check lives
here so callers never repeat it.
"""

import inspect
from collections.abc import Iterable
from typing import Any

from perch._internal.types import Hook


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result when it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


async def run_hooks(hooks: Iterable[Hook]) -> None:
    """Run lifecycle hooks in order. The first failure propagates."""
    for hook in hooks:
        await invoke(hook)
