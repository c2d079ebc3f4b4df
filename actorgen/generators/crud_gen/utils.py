"""Helpers for building generated code as ast nodes."""
import ast
import keyword
from typing import Iterable, List, Optional, Sequence

from actorgen.generators.crud_gen.declarations import TypeAnnotation

# Names used by generated signatures and bodies; a field may not shadow them.
RESERVED_NAMES = {"self", "cls", "actor", "record", "target", "transaction"}

# ast fields that must be lists when left unset
_LIST_FIELDS = {
    "args", "bases", "body", "decorator_list", "defaults", "keywords",
    "kw_defaults", "kwonlyargs", "orelse", "posonlyargs", "type_params",
    "items", "keys", "values", "elts",
}


def is_usable_identifier(name: str) -> bool:
    """True if ``name`` can be a parameter and an attribute in generated code."""
    if not name.isidentifier() or keyword.iskeyword(name):
        return False
    if name in RESERVED_NAMES:
        return False
    # Would be name-mangled differently in the model and the actor class
    if name.startswith("__") and not name.endswith("__"):
        return False
    return True


def make(node_type, **fields):
    """Instantiate an ast node, filling unset fields for the running Python."""
    for name in node_type._fields:
        if name not in fields:
            fields[name] = [] if name in _LIST_FIELDS else None
    return node_type(**fields)


def name(identifier: str, ctx=None) -> ast.Name:
    return ast.Name(id=identifier, ctx=ctx or ast.Load())


def dotted(path: str) -> ast.expr:
    head, *rest = path.split(".")
    node: ast.expr = name(head)
    for part in rest:
        node = ast.Attribute(value=node, attr=part, ctx=ast.Load())
    return node


def attribute(value: ast.expr, attr: str, ctx=None) -> ast.Attribute:
    return ast.Attribute(value=value, attr=attr, ctx=ctx or ast.Load())


def annotation_node(annotation: TypeAnnotation) -> ast.expr:
    """Structural ast expression for a resolved annotation."""
    if annotation.verbatim:
        return ast.parse(annotation.name, mode="eval").body
    base = dotted(annotation.name)
    if not annotation.arguments:
        return base
    arguments = [annotation_node(a) for a in annotation.arguments if a is not None]
    if len(arguments) == 1:
        index: ast.expr = arguments[0]
    else:
        index = ast.Tuple(elts=arguments, ctx=ast.Load())
    return ast.Subscript(value=base, slice=index, ctx=ast.Load())


def subscript(base: str, *arguments: ast.expr) -> ast.Subscript:
    index = arguments[0] if len(arguments) == 1 else ast.Tuple(elts=list(arguments), ctx=ast.Load())
    return ast.Subscript(value=dotted(base), slice=index, ctx=ast.Load())


def optional(node: ast.expr) -> ast.Subscript:
    return subscript("typing.Optional", node)


def arg(identifier: str, annotation: Optional[ast.expr] = None) -> ast.arg:
    return make(ast.arg, arg=identifier, annotation=annotation)


def arguments(
    positional: Sequence[ast.arg] = (),
    keyword_only: Sequence[ast.arg] = (),
    keyword_defaults: Optional[Sequence[Optional[ast.expr]]] = None,
) -> ast.arguments:
    if keyword_defaults is None:
        keyword_defaults = [None] * len(keyword_only)
    return make(
        ast.arguments,
        args=list(positional),
        kwonlyargs=list(keyword_only),
        kw_defaults=list(keyword_defaults),
    )


def call(func: ast.expr, args: Iterable[ast.expr] = (), keywords: Iterable[ast.keyword] = ()) -> ast.Call:
    return ast.Call(func=func, args=list(args), keywords=list(keywords))


def forward_keywords(field_names: Iterable[str]) -> List[ast.keyword]:
    """``f=f`` for each field, in order."""
    return [ast.keyword(arg=field, value=name(field)) for field in field_names]


def async_with(context: ast.expr, body: List[ast.stmt], target: Optional[str] = None) -> ast.AsyncWith:
    item = ast.withitem(
        context_expr=context,
        optional_vars=name(target, ast.Store()) if target else None,
    )
    return make(ast.AsyncWith, items=[item], body=body)


def function_def(
    identifier: str,
    args: ast.arguments,
    body: List[ast.stmt],
    returns: Optional[ast.expr] = None,
    decorators: Sequence[str] = (),
    is_async: bool = True,
):
    return make(
        ast.AsyncFunctionDef if is_async else ast.FunctionDef,
        name=identifier,
        args=args,
        body=body,
        decorator_list=[name(d) for d in decorators],
        returns=returns,
    )


def docstring(text: str) -> ast.Expr:
    return ast.Expr(value=ast.Constant(value=text))


def render(node: ast.AST) -> str:
    return ast.unparse(ast.fix_missing_locations(node))
