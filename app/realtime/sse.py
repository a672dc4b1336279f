import asyncio
import json
import logging
from typing import Any, Dict, Set

import anyio
from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

_subscribers: Set[asyncio.Queue] = set()

# un cliente que no consume se descarta al llenarse su cola
SUBSCRIBER_QUEUE_SIZE = 100


async def broadcast(event_type: str, payload: Dict[str, Any]) -> None:
    dead = []
    for q in _subscribers:
        try:
            q.put_nowait({"event": event_type, "data": payload})
        except asyncio.QueueFull:
            dead.append(q)

    for q in dead:
        _subscribers.discard(q)
    if dead:
        logger.info("Dropped %d stalled SSE subscribers", len(dead))


def notify(event_type: str, payload: Dict[str, Any]) -> None:
    """
    Envío best-effort desde endpoints síncronos (threadpool de FastAPI).
    Un fallo aquí nunca debe tumbar la operación que ya se ha confirmado.
    """
    try:
        anyio.from_thread.run(broadcast, event_type, payload)
    except RuntimeError:
        # fuera de un worker thread de anyio (scripts, tests de servicio)
        logger.warning("SSE broadcast skipped for %s: no event loop", event_type)


@router.get("/events")
async def sse_events():
    queue: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
    _subscribers.add(queue)

    async def generator():
        try:
            while True:
                msg = await queue.get()
                yield {
                    "event": msg["event"],
                    "data": json.dumps(msg["data"], ensure_ascii=False, default=str),
                }
        except asyncio.CancelledError:
            pass
        finally:
            _subscribers.discard(queue)

    return EventSourceResponse(generator())
