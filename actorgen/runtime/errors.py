"""Errors raised by generated actors at run time."""


class RuntimeStorageError(Exception):
    """Base class for errors raised by actorgen.runtime."""


class StorageNotConfigured(RuntimeStorageError):
    """No storage opener was given and ACTORGEN_STORAGE_OPENER is unset."""


class ActorClosedError(RuntimeStorageError):
    def __init__(self, actor: str):
        super().__init__(f"{actor} is closed")
        self.actor = actor


class RecordNotFound(RuntimeStorageError):
    def __init__(self, model: str):
        super().__init__(f"{model} record could not be resolved in this storage context")
        self.model = model


class EventLoopMismatch(RuntimeStorageError):
    """A change stream was iterated on a different loop than the one it was given."""
