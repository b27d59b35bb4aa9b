"""
Live-Update Broadcaster
=======================

Keeps the set of connected observers (one per open SSE stream) and fans
mutation events out to them.

- Each observer owns a bounded asyncio.Queue; broadcast uses put_nowait, so
  a slow client can never block a mutation. A client whose queue is full or
  closed is pruned; the others are unaffected.
- stream() turns an observer into SSE text: a `connected` frame first, then
  events as they arrive, and a `heartbeat` frame on a fixed interval
  whether or not events were sent in between.
  It always unsubscribes on exit, so a client disconnect removes the
  observer immediately.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional, Union

from hackportal.core.logging_config import logger
from hackportal.schemas.events import EventFrame, EventType

# Queue item that tells a stream to finish
_SHUTDOWN = object()


class ObserverClosed(Exception):
    """Push attempted on an observer that already left"""


@dataclass
class Observer:
    """One connected live-update client"""
    client_id: str
    queue: asyncio.Queue
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    closed: bool = False

    def push(self, frame: EventFrame) -> None:
        if self.closed:
            raise ObserverClosed(self.client_id)
        self.queue.put_nowait(frame)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self.queue.put_nowait(_SHUTDOWN)
        except asyncio.QueueFull:
            # The stream checks `closed` after every item it takes
            pass


class LiveUpdateBroadcaster:
    """Observer registry; one instance per application, injected where needed"""

    def __init__(self, heartbeat_interval: float = 30.0, queue_size: int = 100):
        self.heartbeat_interval = heartbeat_interval
        self.queue_size = queue_size
        self._observers: Dict[str, Observer] = {}
        self._lock = asyncio.Lock()

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    async def subscribe(self, client_id: Optional[str] = None) -> Observer:
        observer = Observer(
            client_id=client_id or str(uuid.uuid4())[:8],
            queue=asyncio.Queue(maxsize=self.queue_size),
        )
        async with self._lock:
            self._observers[observer.client_id] = observer
        logger.info(f"Live-update client connected: {observer.client_id} ({self.observer_count} total)")
        return observer

    async def unsubscribe(self, observer: Observer) -> None:
        async with self._lock:
            removed = self._observers.pop(observer.client_id, None)
        observer.close()
        if removed is not None:
            logger.info(f"Live-update client disconnected: {observer.client_id} ({self.observer_count} total)")

    async def broadcast(self, event_type: Union[EventType, str], data: Optional[Dict[str, Any]] = None) -> int:
        """Push one frame to every observer; returns how many received it"""
        try:
            frame = EventFrame.build(event_type, data)
            async with self._lock:
                targets = list(self._observers.values())

            delivered = 0
            dead = []
            for observer in targets:
                try:
                    observer.push(frame)
                    delivered += 1
                except (asyncio.QueueFull, ObserverClosed):
                    dead.append(observer)

            if dead:
                async with self._lock:
                    for observer in dead:
                        self._observers.pop(observer.client_id, None)
                for observer in dead:
                    observer.close()

            logger.log_broadcast(frame.type, delivered, pruned=len(dead))
            return delivered
        except Exception as e:
            # Mutations have already committed by the time they broadcast
            logger.log_error_with_context(e, context="broadcast", broadcast_type=str(event_type))
            return 0

    async def broadcast_snapshot(self, event_type: Union[EventType, str], projector, **extra: Any) -> int:
        """Broadcast the full refreshed catalog + ledger view plus event-specific fields"""
        try:
            data = await projector.snapshot()
        except Exception as e:
            logger.log_error_with_context(e, context="broadcast_snapshot", broadcast_type=str(event_type))
            return 0
        data.update(extra)
        return await self.broadcast(event_type, data)

    async def stream(self, observer: Observer) -> AsyncIterator[str]:
        """SSE text for one observer until it disconnects or the broadcaster closes"""
        try:
            yield EventFrame.build(
                EventType.CONNECTED, {"message": "Real-time updates enabled", "clientId": observer.client_id}
            ).to_sse()

            loop = asyncio.get_running_loop()
            next_heartbeat = loop.time() + self.heartbeat_interval
            while not observer.closed:
                remaining = next_heartbeat - loop.time()
                if remaining <= 0:
                    # Fixed schedule: events arriving in between do not push it back
                    next_heartbeat += self.heartbeat_interval
                    if next_heartbeat <= loop.time():
                        next_heartbeat = loop.time() + self.heartbeat_interval
                    yield EventFrame.build(EventType.HEARTBEAT).to_sse()
                    continue

                try:
                    item = await asyncio.wait_for(observer.queue.get(), timeout=remaining)
                except asyncio.TimeoutError:
                    continue

                if item is _SHUTDOWN or observer.closed:
                    break
                yield item.to_sse()
        finally:
            await self.unsubscribe(observer)

    async def close(self) -> None:
        """Wake every stream with a shutdown signal and forget all observers"""
        async with self._lock:
            observers = list(self._observers.values())
            self._observers.clear()
        for observer in observers:
            observer.close()
        if observers:
            logger.info(f"Closed {len(observers)} live-update streams")
