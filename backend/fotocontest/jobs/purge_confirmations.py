from __future__ import annotations
import asyncio
from datetime import datetime, timezone as dt_tz
import structlog
from fotocontest.db import SessionLocal, engine
from fotocontest.logging_setup import configure_logging
from fotocontest.services.confirmations import purge_expired

log = structlog.get_logger()

async def _run(now: datetime | None = None) -> int:
    now = now or datetime.now(dt_tz.utc)
    async with SessionLocal() as session:
        removed = await purge_expired(session, now=now)
    log.info("expired_confirmations_purged", removed=removed, cutoff=now.isoformat())
    return removed

async def _main() -> int:
    try:
        return await _run()
    finally:
        await engine.dispose()

def main():
    # cron / scheduler entry point (sync)
    configure_logging()
    asyncio.run(_main())

if __name__ == "__main__":
    main()
