"""Invoke helpers: call sync or async callables uniformly.

Handler and middleware functions can be ``def`` or ``async def``. Any
code that calls a user-provided function must handle both cases. This
module provides a single helper so the sync/async check lives in
exactly one place.

Usage::

    from wren._internal.invoke import invoke

    result = await invoke(func, request, response)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
