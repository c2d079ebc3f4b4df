"""Expansion errors raised by the extractor and synthesizer."""
from typing import Optional


class ExpansionError(Exception):
    """Base class for errors that abort expansion of one declaration."""

    def __init__(self, message: str, declaration: str, member: Optional[str] = None, line: int = 0):
        super().__init__(message)
        self.message = message
        self.declaration = declaration
        self.member = member
        self.line = line

    def __str__(self) -> str:
        location = self.declaration if self.member is None else f"{self.declaration}.{self.member}"
        return f"{location}: {self.message}"


class StructuralMismatch(ExpansionError):
    """The marker was applied to something that is not a class."""


class MissingTypeAnnotation(ExpansionError):
    def __init__(self, declaration: str, member: str, line: int = 0):
        super().__init__(
            f"persisted field '{member}' has no type annotation",
            declaration, member, line,
        )


class UnresolvedGenericArgument(ExpansionError):
    def __init__(self, declaration: str, member: str, position: int, line: int = 0):
        super().__init__(
            f"generic argument {position} of '{member}' cannot be resolved to a type name",
            declaration, member, line,
        )
        self.position = position


class DuplicateField(ExpansionError):
    def __init__(self, declaration: str, member: str, line: int = 0):
        super().__init__(f"persisted field '{member}' is declared more than once", declaration, member, line)


class InvalidIdentifier(ExpansionError):
    def __init__(self, declaration: str, identifier: str):
        super().__init__(f"'{identifier}' is not a usable Python identifier", declaration, identifier)
