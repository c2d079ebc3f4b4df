"""Run-time support imported by expanded modules."""
from actorgen.runtime.actor import ActorState, ModelActor
from actorgen.runtime.errors import (
    ActorClosedError,
    EventLoopMismatch,
    RecordNotFound,
    RuntimeStorageError,
    StorageNotConfigured,
)
from actorgen.runtime.markers import PersistedField, gen_crud, persisted
from actorgen.runtime.storage import (
    CollectionChange,
    CollectionError,
    Initial,
    NotificationToken,
    Results,
    Storage,
    StorageConfiguration,
    Update,
    WriteTransaction,
)

__all__ = [
    "ActorClosedError",
    "ActorState",
    "CollectionChange",
    "CollectionError",
    "EventLoopMismatch",
    "Initial",
    "ModelActor",
    "NotificationToken",
    "PersistedField",
    "RecordNotFound",
    "Results",
    "RuntimeStorageError",
    "Storage",
    "StorageConfiguration",
    "StorageNotConfigured",
    "Update",
    "WriteTransaction",
    "gen_crud",
    "persisted",
]
