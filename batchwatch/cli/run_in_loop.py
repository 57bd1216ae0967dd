import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

import typer
from typing_extensions import ParamSpec

_P = ParamSpec("_P")
_R = TypeVar("_R")

_log = logging.getLogger(__name__)


def run_in_loop(f: Callable[_P, Awaitable[_R]]) -> Callable[_P, _R]:
    """
    Utility to run a click/typer command function in an event loop
    (because they don't support it out of the box)

    Ctrl-C cancels the coroutine, letting it clean up, and exits with code 130.
    """

    @wraps(f)
    def in_loop(*args: Any, **kwargs: Any) -> _R:
        try:
            return asyncio.run(f(*args, **kwargs))  # type: ignore
        except KeyboardInterrupt:
            _log.info("Interrupted")
            raise typer.Exit(130)

    return in_loop
