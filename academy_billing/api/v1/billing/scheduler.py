"""In-process daily tick that triggers the billing run (enabled by BILLING_SCHEDULER_ENABLED)."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from academy_billing.core.config import settings

from .service import run_billing

logger = logging.getLogger(__name__)


async def billing_loop(session_factory: async_sessionmaker, interval_seconds: Optional[int] = None) -> None:
    """Run billing for today's UTC date, then sleep. Repeated runs within a month only bill new students."""
    interval = interval_seconds or settings.billing_scheduler_interval_seconds
    while True:
        run_date = datetime.now(timezone.utc).date()
        try:
            await run_billing(session_factory, run_date)
        except asyncio.CancelledError:
            raise
        except Exception:
            # Candidate loading failed (store unavailable); try again on the next tick
            logger.exception("Scheduled billing run for %s failed", run_date)
        await asyncio.sleep(interval)


def start_billing_scheduler(session_factory: async_sessionmaker) -> asyncio.Task:
    logger.info("Starting billing scheduler (every %ss)", settings.billing_scheduler_interval_seconds)
    return asyncio.create_task(billing_loop(session_factory), name="billing-scheduler")
