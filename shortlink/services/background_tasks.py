"""
Background Task Helpers

The expired-URL sweep runs as an asyncio task next to the request handlers.
It only deletes rows that are already unreadable, so it needs no coordination
with live traffic beyond the store's own per-statement locking.
"""

import asyncio
import logging
from typing import Optional

from shortlink.services.url_service import URLShorteningService

logger = logging.getLogger(__name__)


async def run_periodic_cleanup(service: URLShorteningService, interval_seconds: float) -> None:
    """
    Sweep expired URLs every interval_seconds until cancelled.

    The first sweep runs immediately. A failing sweep is logged and the loop
    keeps going.
    """
    while True:
        try:
            removed = await service.cleanup_expired_urls()
            logger.debug(f"Expired URL sweep removed {removed} rows")
        except Exception as e:
            logger.error(f"Expired URL sweep failed: {str(e)}", exc_info=True)
        await asyncio.sleep(interval_seconds)


def start_cleanup_task(service: URLShorteningService, interval_seconds: float) -> asyncio.Task:
    """Schedule the sweep loop on the running event loop."""
    return asyncio.create_task(
        run_periodic_cleanup(service, interval_seconds),
        name="expired-url-sweep",
    )


async def stop_cleanup_task(task: Optional[asyncio.Task]) -> None:
    """Cancel the sweep loop and wait for it to finish."""
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
