"""Contains utilities to conveniently log different information."""
from __future__ import annotations

import sys
from collections.abc import Callable
from datetime import datetime
from typing import IO, Optional


def timestamp() -> str:
    """Provides the current time as a nice and normalized string."""
    return datetime.now().strftime("%y-%m-%d %H:%M:%S")


def make_logger(enabled: bool = True, *, file: Optional[IO[str]] = None,
                prefix: str | Callable[[], str] = "") -> Callable[..., None]:
    """Creates a new logging utility.

    The generated method can be used like a regular `print`, but with defaults that are better suited for logging purposes.

    If `enabled` is `False`, calling the logging function will not actually print anything and simply return. This
    is especially useful to implement logging-hooks (e.g. in the strategy table) without permanently re-checking whether
    logging is enabled or not.

    Parameters
    ----------
    enabled : bool, optional
        Whether logging is enabled, by default *True*
    file : Optional[IO[str]], optional
        Destination to write the log entries to. By default, entries are written to the current ``sys.stderr``
    prefix : str | Callable[[], str], optional
        A common prefix that should be added before each log entry. Can be either a hard-coded string, or a callable that
        dynamically produces a string for each logging action separately (e.g. `timestamp`).

    Returns
    -------
    Callable[..., None]
        A `print`-like function
    """
    def _log(*args, **kwargs) -> None:
        if prefix and isinstance(prefix, str):
            args = [prefix] + list(args)
        elif prefix:
            args = [prefix()] + list(args)
        kwargs.pop("file", None)
        print(*args, file=file if file is not None else sys.stderr, **kwargs)

    def _dummy_log(*args, **kwargs) -> None:
        pass

    return _log if enabled else _dummy_log

