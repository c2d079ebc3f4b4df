"""Base class for generated ``<Model>Actor`` peers."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, ClassVar, List, Optional, Tuple

from actorgen.runtime.errors import ActorClosedError, EventLoopMismatch, RecordNotFound
from actorgen.runtime.storage import (
    CollectionError,
    NotificationToken,
    Storage,
    StorageConfiguration,
    WriteTransaction,
)

log = logging.getLogger(__name__)


class ActorState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


_STOP = object()


@dataclass(eq=False)
class _Subscription:
    token: NotificationToken
    queue: asyncio.Queue
    loop: asyncio.AbstractEventLoop

    def stop(self) -> None:
        self.loop.call_soon_threadsafe(self.queue.put_nowait, _STOP)


class ModelActor:
    """
    Serializes every storage access for one model class.

    All operations of one instance run under a single asyncio.Lock. Separate
    instances are not coordinated with each other; isolation between them is
    the storage engine's job.

    Usage:
        async with TodoActor() as actor:
            todo = await actor.create(...)
    """
    model: ClassVar[type] = object
    fields: ClassVar[Tuple[str, ...]] = ()
    primary_key: ClassVar[Optional[str]] = None

    def __init__(
        self,
        configuration: Optional[StorageConfiguration] = None,
        storage: Optional[Storage] = None,
    ):
        self.configuration = configuration or StorageConfiguration.default()
        self._storage = storage
        # Handles passed in belong to the caller and are left open on close()
        self._owns_storage = storage is None
        self._lock = asyncio.Lock()
        self._subscriptions: List[_Subscription] = []
        self.state = ActorState.READY if storage is not None else ActorState.UNINITIALIZED

    @property
    def name(self) -> str:
        return type(self).__name__

    async def open(self) -> "ModelActor":
        async with self._lock:
            await self._ready()
        return self

    async def _ready(self) -> Storage:
        # Caller holds self._lock
        if self.state is ActorState.CLOSED:
            raise ActorClosedError(self.name)
        if self.state is ActorState.UNINITIALIZED:
            self._storage = await self.configuration.open()
            self.state = ActorState.READY
            log.debug("Opened storage %s for %s", self.configuration.name, self.name)
        return self._storage

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[WriteTransaction]:
        """Scoped write transaction, serialized with every other call."""
        async with self._lock:
            storage = await self._ready()
            async with storage.write() as transaction:
                yield transaction

    def localize(self, record: Any) -> Any:
        """Return ``record`` as seen by this actor's storage.

        Records read through another storage handle are handed off and
        resolved again here instead of being used directly.
        """
        storage = self._storage
        if storage.owns(record):
            return record
        resolved = storage.resolve(storage.handoff(record))
        if resolved is None:
            raise RecordNotFound(type(record).__name__)
        return resolved

    async def snapshot(self, model: type) -> List[Any]:
        async with self._lock:
            storage = await self._ready()
            return list(storage.objects(model).snapshot())

    async def changes(
        self,
        model: type,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> AsyncIterator[List[Any]]:
        """
        Yield a snapshot list for the initial result set and for every
        committed change, in commit order, until the storage reports an error.

        Args:
            model: Model class to observe
            loop: Loop the consumer iterates on; notifications are handed to
                it thread-safely. Defaults to the running loop.

        Raises:
            EventLoopMismatch: ``loop`` is not the loop iterating the stream
        """
        running = asyncio.get_running_loop()
        if loop is not None and loop is not running:
            raise EventLoopMismatch(
                f"{model.__name__} changes were given a loop other than the one iterating them"
            )
        loop = running
        queue: asyncio.Queue = asyncio.Queue()

        def deliver(change) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, change)

        async with self._lock:
            storage = await self._ready()
            subscription = _Subscription(storage.objects(model).observe(deliver), queue, loop)
            self._subscriptions.append(subscription)
        log.debug("Subscribed to %s changes", model.__name__)

        try:
            while True:
                change = await queue.get()
                if change is _STOP:
                    return
                if isinstance(change, CollectionError):
                    log.warning("Observation of %s ended: %s", model.__name__, change.error)
                    return
                yield list(change.results)
        finally:
            self._release(subscription)

    def _release(self, subscription: _Subscription) -> None:
        """Invalidate the token unless close() or an earlier call already did."""
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            subscription.token.invalidate()

    async def close(self) -> None:
        async with self._lock:
            if self.state is ActorState.CLOSED:
                return
            subscriptions, self._subscriptions = self._subscriptions, []
            for subscription in subscriptions:
                subscription.token.invalidate()
                subscription.stop()
            if self._owns_storage and self._storage is not None:
                await self._storage.close()
            self._storage = None
            self.state = ActorState.CLOSED
        log.debug("Closed %s", self.name)

    async def __aenter__(self) -> "ModelActor":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
