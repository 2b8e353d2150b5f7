"""Async helpers for CLI commands."""

import asyncio
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from vinylogue.infrastructure.cli.ui import command_error_handler

R = TypeVar("R")


def async_command(func: Callable[..., Awaitable[R]]) -> Callable[..., R]:
    """Run an async command body with ``asyncio.run`` under the error handler."""

    @command_error_handler
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> R:
        return asyncio.run(func(*args, **kwargs))

    return wrapper
