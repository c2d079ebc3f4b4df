"""Schema extraction: persisted fields of an annotated class declaration."""
import logging
from typing import List, Optional

from actorgen.generators.crud_gen.declarations import (
    ClassDeclaration,
    DeclarationKind,
    MemberDeclaration,
    TypeAnnotation,
)
from actorgen.generators.crud_gen.errors import (
    DuplicateField,
    InvalidIdentifier,
    MissingTypeAnnotation,
    UnresolvedGenericArgument,
)
from actorgen.generators.crud_gen.types import FieldSchema
from actorgen.generators.crud_gen.utils import is_usable_identifier

log = logging.getLogger(__name__)


def render_signature(annotation: TypeAnnotation) -> str:
    """Render ``Base[Arg1, Arg2]``; unresolved arguments are skipped."""
    arguments = [render_signature(a) for a in annotation.arguments if a is not None]
    if not arguments:
        return annotation.name
    return f"{annotation.name}[{', '.join(arguments)}]"


def _first_unresolved(annotation: TypeAnnotation) -> Optional[int]:
    """Position of the first unresolved argument, searching depth first."""
    for position, argument in enumerate(annotation.arguments):
        if argument is None or _first_unresolved(argument) is not None:
            return position
    return None


def _prune(annotation: TypeAnnotation) -> TypeAnnotation:
    return TypeAnnotation(
        annotation.name,
        tuple(_prune(a) for a in annotation.arguments if a is not None),
    )


def _resolve(declaration: ClassDeclaration, member: MemberDeclaration, strict_generics: bool) -> TypeAnnotation:
    if member.annotation is None:
        raise MissingTypeAnnotation(declaration.name, member.name, member.line)

    position = _first_unresolved(member.annotation)
    if position is None:
        return member.annotation
    if strict_generics:
        raise UnresolvedGenericArgument(declaration.name, member.name, position, member.line)

    log.warning(
        "Dropping unresolved generic argument %d of field %s", position, member.name,
        extra={"declaration": declaration.name, "stage": "extract"},
    )
    return _prune(member.annotation)


def extract_schema(declaration: ClassDeclaration, strict_generics: bool = True) -> List[FieldSchema]:
    """
    Extract the ordered persisted-field schema of a declaration.

    Args:
        declaration: Declaration produced by the front end
        strict_generics: Fail on generic arguments that are not type names
            instead of dropping them from the signature

    Returns:
        FieldSchema list in declaration order; empty for anything that is
        not a class

    Raises:
        MissingTypeAnnotation: a persisted field has no annotation
        UnresolvedGenericArgument: strict mode and an argument is unreadable
        DuplicateField: a persisted field name appears twice
        InvalidIdentifier: a persisted field name clashes with generated code
    """
    if declaration.kind is not DeclarationKind.CLASS:
        return []

    schema: List[FieldSchema] = []
    seen = set()
    for member in declaration.members:
        if not member.is_persisted:
            continue
        if not is_usable_identifier(member.name):
            raise InvalidIdentifier(declaration.name, member.name)
        if member.name in seen:
            raise DuplicateField(declaration.name, member.name, member.line)
        seen.add(member.name)

        annotation = _resolve(declaration, member, strict_generics)
        schema.append(FieldSchema(
            name=member.name,
            type_signature=render_signature(annotation),
            annotation=annotation,
            primary_key=member.is_primary_key,
        ))

    log.debug(
        "Extracted %d persisted fields", len(schema),
        extra={"declaration": declaration.name, "stage": "extract"},
    )
    return schema
