"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and
reports whether the optional Redis relay is reachable. Redis being
disabled is not a problem; Redis being configured but down is
"degraded" — events still flow, but only within this instance.
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError

from procmon import __version__
from procmon.config import settings
from procmon.store import ProcessStore, get_store

router = APIRouter()

_started = time.monotonic()


@router.get("/health")
async def health_check(store: ProcessStore = Depends(get_store)):
    """Check server health and dependency connectivity."""
    checks = {
        "server": "ok",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _started, 3),
        "processes": len(store),
    }

    if not settings.redis_url:
        checks["redis"] = "disabled"
    else:
        from procmon.realtime.pubsub import get_redis

        try:
            await get_redis().ping()
            checks["redis"] = "ok"
        except RuntimeError:
            checks["redis"] = "error: not connected"
        except RedisError as e:
            checks["redis"] = f"error: {e}"

    status = "healthy" if checks["redis"] in ("ok", "disabled") else "degraded"
    return {"status": status, **checks}
