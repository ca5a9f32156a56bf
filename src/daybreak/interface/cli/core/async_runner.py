"""Async execution for CLI commands.

Click commands are synchronous; plan execution is a coroutine. This module
is the one place the CLI crosses that boundary.
"""

import asyncio
import functools
from collections.abc import Callable, Coroutine
from typing import Any, ParamSpec, TypeVar

T = TypeVar("T")
P = ParamSpec("P")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion from synchronous code.

    Args:
        coro: The coroutine to execute

    Returns:
        The result of the coroutine

    Raises:
        RuntimeError: If called while an event loop is already running
        Any exception raised by the coroutine is propagated
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    coro.close()
    raise RuntimeError("run_async() cannot be called from a running event loop")


def async_command(
    f: Callable[P, Coroutine[Any, Any, T]],
) -> Callable[P, T]:
    """Decorator that wraps async functions for Click commands.

    Usage:
        @click.command()
        @async_command
        async def my_command(arg: str) -> None:
            result = await some_async_operation(arg)
            console.print(result)

    The decorator preserves the function signature for Click's
    introspection.
    """

    @functools.wraps(f)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        return run_async(f(*args, **kwargs))

    return wrapper
