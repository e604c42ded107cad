"""
Run one promotion maintenance cycle outside the API process, with the same
retry policy as the background scheduler.

Usage: python -m cleanbook.scripts.run_promotion_maintenance
"""
import asyncio
import logging

from cleanbook.core.config import get_settings
from cleanbook.db.session import SessionLocal
from cleanbook.services.promotion_scheduler import CycleStatus, build_promotion_scheduler


async def main() -> int:
    settings = get_settings()
    scheduler = build_promotion_scheduler(settings, SessionLocal)
    report = await scheduler.run_cycle()

    if report.status is CycleStatus.COMPLETED:
        print(
            f"Expired {report.result.expired_promotions} promotions, "
            f"cleaned {report.result.cleaned_bookings} bookings"
        )
        return 0

    print(f"Maintenance {report.status.value} after {report.attempts} attempts: {report.error}")
    return 1


if __name__ == "__main__":
    logging.basicConfig(
        level=get_settings().LOG_LEVEL,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    raise SystemExit(asyncio.run(main()))
