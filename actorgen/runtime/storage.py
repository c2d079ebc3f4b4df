"""Storage engine contract used by generated code.

actorgen does not implement storage. These protocols describe what a storage
engine has to provide for generated actors to work against it.
"""
import importlib
import inspect
from dataclasses import dataclass, field
from typing import (
    Any,
    AsyncContextManager,
    Awaitable,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Type,
    TypeVar,
    Union,
    runtime_checkable,
)

from pydantic import BaseModel, ConfigDict

from actorgen.core.config import get_settings
from actorgen.runtime.errors import StorageNotConfigured

T = TypeVar("T")


@dataclass(frozen=True)
class Initial:
    """First notification of a subscription: the full result set."""
    results: List[Any]


@dataclass(frozen=True)
class Update:
    """One committed change batch; indices refer to the previous snapshot."""
    results: List[Any]
    deletions: List[int] = field(default_factory=list)
    insertions: List[int] = field(default_factory=list)
    modifications: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class CollectionError:
    """The subscription failed; no further notifications follow."""
    error: BaseException


CollectionChange = Union[Initial, Update, CollectionError]


@runtime_checkable
class NotificationToken(Protocol):
    def invalidate(self) -> None: ...


class Results(Protocol):
    def snapshot(self) -> List[Any]: ...

    def observe(self, callback: Callable[[CollectionChange], None]) -> NotificationToken: ...


class WriteTransaction(Protocol):
    def create(self, model: Type[T], values: Mapping[str, Any]) -> T: ...

    def delete(self, record: Any) -> None: ...


@runtime_checkable
class Storage(Protocol):
    def write(self) -> AsyncContextManager[WriteTransaction]: ...

    def objects(self, model: type) -> Results: ...

    def owns(self, record: Any) -> bool: ...

    def handoff(self, record: Any) -> Any: ...

    def resolve(self, token: Any) -> Optional[Any]: ...

    async def close(self) -> None: ...


StorageOpener = Callable[["StorageConfiguration"], Union[Storage, Awaitable[Storage]]]


def load_opener(path: str) -> StorageOpener:
    """Import ``package.module:callable``."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise StorageNotConfigured(f"storage opener must look like 'module:callable', got {path!r}")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError:
        raise StorageNotConfigured(f"{module_name} has no attribute {attr!r}") from None


class StorageConfiguration(BaseModel):
    """How an actor obtains its storage handle."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = "default"
    opener: Optional[Callable[..., Any]] = None
    options: Dict[str, Any] = {}

    @classmethod
    def default(cls) -> "StorageConfiguration":
        return cls()

    def resolve_opener(self) -> StorageOpener:
        if self.opener is not None:
            return self.opener
        path = get_settings().storage_opener
        if not path:
            raise StorageNotConfigured(
                "no storage opener configured; pass one or set ACTORGEN_STORAGE_OPENER"
            )
        return load_opener(path)

    async def open(self) -> Storage:
        storage = self.resolve_opener()(self)
        if inspect.isawaitable(storage):
            storage = await storage
        return storage
