"""Dataclasses for CRUD/actor generation."""
import ast
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from actorgen.generators.crud_gen.declarations import TypeAnnotation


@dataclass(frozen=True)
class FieldSchema:
    """One persisted field of a model class."""
    name: str
    type_signature: str
    annotation: TypeAnnotation
    primary_key: bool = False


class OperationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"
    OBSERVE = "observe"


@dataclass(frozen=True)
class GeneratedDeclaration:
    """A generated function or class, as an ast node plus its source."""
    name: str
    node: ast.stmt = field(compare=False, repr=False)
    source: str


@dataclass(frozen=True)
class GeneratedArtifact:
    class_name: str
    members: Tuple[GeneratedDeclaration, ...]
    peer: Optional[GeneratedDeclaration] = None
    schema: Tuple[FieldSchema, ...] = ()

    @property
    def member_names(self) -> List[str]:
        return [member.name for member in self.members]


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    declaration: str
    message: str
    member: Optional[str] = None
    line: int = 0

    def __str__(self) -> str:
        location = self.declaration if self.member is None else f"{self.declaration}.{self.member}"
        return f"{self.line}: {self.severity.value}: {location}: {self.message}"


@dataclass
class ExpansionResult:
    """Result of expanding every marked declaration in one module."""
    source: str
    artifacts: List[GeneratedArtifact] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(d.severity is Severity.ERROR for d in self.diagnostics)


@dataclass
class GeneratedFile:
    """Represents a generated file."""
    path: str  # Relative path from output directory
    content: str  # File contents
