"""Declaration model consumed by the schema extractor.

The front end (see ``frontend.py``) turns parsed Python source into these
frozen dataclasses; everything downstream only sees this model.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional, Tuple


class DeclarationKind(str, Enum):
    CLASS = "class"
    VALUE = "value"
    FUNCTION = "function"
    NAMESPACE = "namespace"


class MemberKind(str, Enum):
    STORED = "stored"
    METHOD = "method"
    OTHER = "other"


class AttributeKind(str, Enum):
    """Attributes the front end knows how to recognise."""
    GEN_CRUD = "gen_crud"
    PERSISTED = "persisted"
    DATACLASS = "dataclass"
    OTHER = "other"


@dataclass(frozen=True)
class Attribute:
    kind: AttributeKind
    name: str
    arguments: Tuple[Tuple[str, Any], ...] = ()

    def argument(self, key: str, default: Any = None) -> Any:
        for name, value in self.arguments:
            if name == key:
                return value
        return default


@dataclass(frozen=True)
class AttributeSet:
    attributes: Tuple[Attribute, ...] = ()

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self.attributes)

    def __len__(self) -> int:
        return len(self.attributes)

    def has(self, kind: AttributeKind) -> bool:
        return any(attribute.kind is kind for attribute in self.attributes)

    def first(self, kind: AttributeKind) -> Optional[Attribute]:
        for attribute in self.attributes:
            if attribute.kind is kind:
                return attribute
        return None


@dataclass(frozen=True)
class TypeAnnotation:
    """A type annotation as written, e.g. ``List[Post]``.

    ``arguments`` holds one entry per generic argument; an entry is ``None``
    when the front end could not reduce the argument to a (possibly dotted)
    name, for example a list or a call expression.
    """
    name: str
    arguments: Tuple[Optional["TypeAnnotation"], ...] = ()
    # Literal values, Annotated metadata and "..." are kept as source text in
    # name and rendered back unchanged
    verbatim: bool = False


@dataclass(frozen=True)
class MemberDeclaration:
    name: Optional[str]
    kind: MemberKind
    attributes: AttributeSet = field(default_factory=AttributeSet)
    annotation: Optional[TypeAnnotation] = None
    line: int = 0

    @property
    def is_persisted(self) -> bool:
        return self.kind is MemberKind.STORED and self.attributes.has(AttributeKind.PERSISTED)

    @property
    def is_primary_key(self) -> bool:
        marker = self.attributes.first(AttributeKind.PERSISTED)
        return bool(marker and marker.argument("primary_key", False))


@dataclass(frozen=True)
class ClassDeclaration:
    """An annotated declaration, as supplied by the front end."""
    name: str
    kind: DeclarationKind
    members: Tuple[MemberDeclaration, ...] = ()
    attributes: AttributeSet = field(default_factory=AttributeSet)
    line: int = 0
