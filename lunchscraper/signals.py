"""
Lunch Scraper — Process Signal Handling

SIGINT, SIGTERM, SIGHUP and SIGQUIT all request a graceful shutdown: they set
an asyncio.Event the supervisor watches. Nothing is killed from the handler.
"""

from __future__ import annotations

import asyncio
import signal

import structlog

logger = structlog.get_logger(__name__)

SHUTDOWN_SIGNALS = tuple(
    getattr(signal, name)
    for name in ("SIGINT", "SIGTERM", "SIGHUP", "SIGQUIT")
    if hasattr(signal, name)
)


def install_shutdown_handlers(shutdown: asyncio.Event) -> list[signal.Signals]:
    """
    Set `shutdown` when any shutdown signal arrives.

    Must be called from inside the running event loop.

    Returns:
        The signals a handler was installed for.
    """
    loop = asyncio.get_running_loop()

    def handle_signal(signum: signal.Signals) -> None:
        logger.info("shutdown_signal_received", signal=signum.name)
        shutdown.set()

    installed = []
    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, handle_signal, sig)
        except (NotImplementedError, RuntimeError):
            # Windows, or not running in the main thread
            logger.warning("signal_handler_not_supported", signal=sig.name)
            continue
        installed.append(sig)
    return installed


def remove_shutdown_handlers() -> None:
    loop = asyncio.get_running_loop()
    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.remove_signal_handler(sig)
        except (NotImplementedError, RuntimeError):
            continue
