"""
app_log.py
Global app log: forwards progress messages to a registered sink.

A front end (GUI status panel, CLI printer) calls set_app_log(fn) once.
Engine code receives a log_fn parameter and falls back to app_log(msg) when
none is passed, so messages reach the sink without threading the callable
through every layer.

Every message is also written to the "hydrospanner" logger at INFO level.
Thread safety: when app_log is called from a background thread while a sink
is registered, messages are queued and delivered by the next call made on
the registering thread (or by drain()).
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable

LogFn = Callable[[str], None]

log = logging.getLogger("hydrospanner")

_log_fn: LogFn | None = None
_main_thread_id: int | None = None
_log_queue: queue.Queue[str] = queue.Queue()


def set_app_log(log_fn: LogFn | None) -> None:
    """Register the sink for progress messages. Pass None to detach."""
    global _log_fn, _main_thread_id
    _log_fn = log_fn
    _main_thread_id = threading.current_thread().ident if log_fn else None


def drain() -> int:
    """Deliver queued background-thread messages to the sink. Returns the count."""
    delivered = 0
    if _log_fn is None:
        return delivered
    while True:
        try:
            msg = _log_queue.get_nowait()
        except queue.Empty:
            break
        _deliver(msg)
        delivered += 1
    return delivered


def _deliver(message: str) -> None:
    try:
        _log_fn(message)
    except Exception:
        log.exception("app log sink failed")


def app_log(message: str) -> None:
    """Log a progress message and forward it to the sink (if any)."""
    log.info(message)
    if _log_fn is None:
        return
    if threading.current_thread().ident == _main_thread_id:
        drain()
        _deliver(message)
    else:
        _log_queue.put_nowait(message)


def make_log_fn(log_fn: LogFn | None) -> LogFn:
    """Return log_fn, or app_log when the caller passed nothing."""
    return log_fn or app_log
