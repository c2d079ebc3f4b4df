"""Front end: converts ``ast`` nodes into the declaration model.

Only shape is recorded here. Whether a declaration can be expanded, and
whether a persisted member is usable, is decided by the extractor.
"""
import ast
from typing import Any, Dict, List, Optional, Tuple

from actorgen.generators.crud_gen.declarations import (
    Attribute,
    AttributeKind,
    AttributeSet,
    ClassDeclaration,
    DeclarationKind,
    MemberDeclaration,
    MemberKind,
    TypeAnnotation,
)

# Local name -> fully qualified name, from a module's import statements
Aliases = Dict[str, str]

# Marker names, bare (used without an import) or fully qualified
_ATTRIBUTE_NAMES = {
    "gen_crud": AttributeKind.GEN_CRUD,
    "actorgen.gen_crud": AttributeKind.GEN_CRUD,
    "actorgen.runtime.gen_crud": AttributeKind.GEN_CRUD,
    "actorgen.runtime.markers.gen_crud": AttributeKind.GEN_CRUD,
    "persisted": AttributeKind.PERSISTED,
    "actorgen.persisted": AttributeKind.PERSISTED,
    "actorgen.runtime.persisted": AttributeKind.PERSISTED,
    "actorgen.runtime.markers.persisted": AttributeKind.PERSISTED,
    "dataclass": AttributeKind.DATACLASS,
    "dataclasses.dataclass": AttributeKind.DATACLASS,
}

_VALUE_BASES = {
    "NamedTuple", "typing.NamedTuple",
    "Enum", "IntEnum", "StrEnum", "enum.Enum", "enum.IntEnum", "enum.StrEnum",
}

# Generics whose arguments (all, or all but the first) are values, not types
_LITERAL_GENERICS = {"Literal"}
_METADATA_GENERICS = {"Annotated"}


def import_aliases(module: ast.Module) -> Aliases:
    """Map every name bound by a top-level import to what it refers to."""
    aliases: Aliases = {}
    for statement in module.body:
        if isinstance(statement, ast.Import):
            for alias in statement.names:
                if alias.asname:
                    aliases[alias.asname] = alias.name
                else:
                    # import a.b binds a
                    head = alias.name.split(".")[0]
                    aliases[head] = head
        elif isinstance(statement, ast.ImportFrom) and statement.module and not statement.level:
            for alias in statement.names:
                if alias.name != "*":
                    aliases[alias.asname or alias.name] = f"{statement.module}.{alias.name}"
    return aliases


def qualified_name(name: str, aliases: Optional[Aliases] = None) -> str:
    """Resolve the first component of a dotted name through ``aliases``."""
    if not aliases:
        return name
    head, dot, rest = name.partition(".")
    if head not in aliases:
        return name
    return aliases[head] + dot + rest


def dotted_name(node: ast.expr) -> Optional[str]:
    """Return ``a.b.c`` for a Name/Attribute chain, else None."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        prefix = dotted_name(node.value)
        if prefix is not None:
            return f"{prefix}.{node.attr}"
    return None


def _literal(node: ast.expr) -> Any:
    try:
        return ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError):
        return ast.unparse(node)


def parse_attribute(node: ast.expr, aliases: Optional[Aliases] = None) -> Attribute:
    """Parse a decorator or a field default into a typed attribute.

    The kind is decided on the imported name, so ``persisted as field_of``
    is still a persistence marker and an unrelated ``persisted`` is not.
    """
    target = node.func if isinstance(node, ast.Call) else node
    name = dotted_name(target) or ast.unparse(target)
    arguments: List[Tuple[str, Any]] = []
    if isinstance(node, ast.Call):
        for position, arg in enumerate(node.args):
            arguments.append((str(position), _literal(arg)))
        for keyword in node.keywords:
            if keyword.arg is not None:
                arguments.append((keyword.arg, _literal(keyword.value)))
    return Attribute(
        kind=_ATTRIBUTE_NAMES.get(qualified_name(name, aliases), AttributeKind.OTHER),
        name=name,
        arguments=tuple(arguments),
    )


def _verbatim(node: ast.expr) -> TypeAnnotation:
    return TypeAnnotation(ast.unparse(node), verbatim=True)


def _type_argument(node: ast.expr) -> Optional[TypeAnnotation]:
    if isinstance(node, ast.Constant) and node.value is Ellipsis:
        return _verbatim(node)
    return parse_annotation(node)


def parse_annotation(node: ast.expr) -> Optional[TypeAnnotation]:
    """Reduce an annotation expression to a TypeAnnotation.

    Returns None when ``node`` is not something a type name can be read
    from; callers decide whether that is fatal.
    """
    if isinstance(node, ast.Constant):
        if node.value is None:
            return TypeAnnotation("None")
        if isinstance(node.value, str):
            # Forward reference, e.g. List["Post"]
            try:
                inner = ast.parse(node.value, mode="eval").body
            except SyntaxError:
                return None
            return parse_annotation(inner)
        return None

    name = dotted_name(node)
    if name is not None:
        return TypeAnnotation(name)

    if isinstance(node, ast.Subscript):
        base = dotted_name(node.value)
        if base is None:
            return None
        elements = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]
        short_name = base.rsplit(".", 1)[-1]
        if short_name in _LITERAL_GENERICS:
            arguments = tuple(_verbatim(element) for element in elements)
        elif short_name in _METADATA_GENERICS:
            arguments = (_type_argument(elements[0]),) + tuple(_verbatim(e) for e in elements[1:])
        else:
            arguments = tuple(_type_argument(element) for element in elements)
        return TypeAnnotation(base, arguments)

    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        options = _union_members(node)
        concrete = [option for option in options if option is None or option.name != "None"]
        if len(concrete) == 1 and len(options) == 2:
            return TypeAnnotation("Optional", (concrete[0],))
        return TypeAnnotation("Union", tuple(options))

    return None


def _union_members(node: ast.expr) -> List[Optional[TypeAnnotation]]:
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _union_members(node.left) + _union_members(node.right)
    return [parse_annotation(node)]


def _member_from_statement(statement: ast.stmt, aliases: Optional[Aliases]) -> List[MemberDeclaration]:
    line = getattr(statement, "lineno", 0)

    if isinstance(statement, ast.AnnAssign):
        if not isinstance(statement.target, ast.Name):
            return [MemberDeclaration(name=None, kind=MemberKind.OTHER, line=line)]
        attributes = ()
        if statement.value is not None and isinstance(statement.value, ast.Call):
            attributes = (parse_attribute(statement.value, aliases),)
        return [MemberDeclaration(
            name=statement.target.id,
            kind=MemberKind.STORED,
            attributes=AttributeSet(attributes),
            # None when present but unreadable, e.g. x: f() = persisted()
            annotation=parse_annotation(statement.annotation),
            line=line,
        )]

    if isinstance(statement, ast.Assign):
        attributes = ()
        if isinstance(statement.value, ast.Call):
            attributes = (parse_attribute(statement.value, aliases),)
        members = []
        for target in statement.targets:
            if isinstance(target, ast.Name):
                members.append(MemberDeclaration(
                    name=target.id,
                    kind=MemberKind.STORED,
                    attributes=AttributeSet(attributes),
                    line=line,
                ))
            else:
                members.append(MemberDeclaration(name=None, kind=MemberKind.OTHER, line=line))
        return members

    if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)):
        return [MemberDeclaration(
            name=statement.name,
            kind=MemberKind.METHOD,
            attributes=AttributeSet(tuple(parse_attribute(d, aliases) for d in statement.decorator_list)),
            line=line,
        )]

    return [MemberDeclaration(name=None, kind=MemberKind.OTHER, line=line)]


def _class_kind(node: ast.ClassDef, attributes: AttributeSet, aliases: Optional[Aliases]) -> DeclarationKind:
    for base in node.bases:
        name = dotted_name(base)
        if name is not None and qualified_name(name, aliases) in _VALUE_BASES:
            return DeclarationKind.VALUE
    marker = attributes.first(AttributeKind.DATACLASS)
    if marker is not None and marker.argument("frozen", False) is True:
        return DeclarationKind.VALUE
    return DeclarationKind.CLASS


def declaration_from_node(
    node: ast.AST,
    name: str = "<module>",
    aliases: Optional[Aliases] = None,
) -> ClassDeclaration:
    """Build a ClassDeclaration for any statement the marker can sit on.

    ``aliases`` comes from import_aliases() on the enclosing module.
    """
    if isinstance(node, ast.ClassDef):
        attributes = AttributeSet(tuple(parse_attribute(d, aliases) for d in node.decorator_list))
        members: List[MemberDeclaration] = []
        for statement in node.body:
            members.extend(_member_from_statement(statement, aliases))
        return ClassDeclaration(
            name=node.name,
            kind=_class_kind(node, attributes, aliases),
            members=tuple(members),
            attributes=attributes,
            line=node.lineno,
        )

    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        return ClassDeclaration(
            name=node.name,
            kind=DeclarationKind.FUNCTION,
            attributes=AttributeSet(tuple(parse_attribute(d, aliases) for d in node.decorator_list)),
            line=node.lineno,
        )

    return ClassDeclaration(name=name, kind=DeclarationKind.NAMESPACE, line=getattr(node, "lineno", 0))


def parse_declaration(source: str) -> ClassDeclaration:
    """Parse source text holding one top-level declaration, after any imports."""
    module = ast.parse(source)
    aliases = import_aliases(module)
    body = [s for s in module.body if not isinstance(s, (ast.Import, ast.ImportFrom))]
    if len(body) != 1:
        return declaration_from_node(module)
    return declaration_from_node(body[0], aliases=aliases)
