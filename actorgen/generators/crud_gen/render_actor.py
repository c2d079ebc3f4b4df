"""Peer actor class rendering.

The generated ``<Model>Actor`` subclasses ``actorgen.runtime.ModelActor``,
which owns the storage handle, the lock and subscription teardown; the
methods rendered here hold the per-field logic.
"""
import ast
from typing import List

from actorgen.generators.crud_gen.types import FieldSchema
from actorgen.generators.crud_gen.utils import (
    annotation_node,
    arg,
    arguments,
    async_with,
    attribute,
    call,
    docstring,
    dotted,
    function_def,
    make,
    name,
    optional,
    subscript,
)

RUNTIME_BASE = "ModelActor"


def _self_call(method: str, args=(), keywords=()) -> ast.Call:
    return call(attribute(name("self"), method), args, keywords)


def _in_transaction(body: List[ast.stmt], bind: bool = True) -> ast.AsyncWith:
    """``async with self.transaction() as transaction: <body>``"""
    return async_with(_self_call("transaction"), body, target="transaction" if bind else None)


def _record_arg(class_name: str) -> ast.arg:
    return arg("record", name(class_name))


def render_actor_create(class_name: str, schema: List[FieldSchema]) -> ast.AsyncFunctionDef:
    params = [arg(f.name, annotation_node(f.annotation)) for f in schema]
    values = ast.Dict(
        keys=[ast.Constant(value=f.name) for f in schema],
        values=[name(f.name) for f in schema],
    )
    create = call(attribute(name("transaction"), "create"), [name(class_name), values])
    return function_def(
        "create",
        arguments([arg("self")], params),
        [_in_transaction([ast.Return(value=create)])],
        returns=name(class_name),
    )


def render_actor_update(class_name: str, schema: List[FieldSchema]) -> ast.AsyncFunctionDef:
    params = [arg(f.name, optional(annotation_node(f.annotation))) for f in schema]
    defaults = [ast.Constant(value=None) for _ in schema]

    body: List[ast.stmt] = [make(
        ast.Assign,
        targets=[name("target", ast.Store())],
        value=_self_call("localize", [name("record")]),
    )]
    for f in schema:
        present = ast.Compare(left=name(f.name), ops=[ast.IsNot()], comparators=[ast.Constant(value=None)])
        assign = make(
            ast.Assign,
            targets=[attribute(name("target"), f.name, ast.Store())],
            value=name(f.name),
        )
        body.append(ast.If(test=present, body=[assign], orelse=[]))

    return function_def(
        "update",
        arguments([arg("self"), _record_arg(class_name)], params, defaults),
        [_in_transaction(body, bind=False)],
        returns=ast.Constant(value=None),
    )


def render_actor_delete(class_name: str, schema: List[FieldSchema]) -> ast.AsyncFunctionDef:
    delete = call(
        attribute(name("transaction"), "delete"),
        [_self_call("localize", [name("record")])],
    )
    return function_def(
        "delete",
        arguments([arg("self"), _record_arg(class_name)]),
        [_in_transaction([ast.Expr(value=delete)])],
        returns=ast.Constant(value=None),
    )


def render_actor_list(class_name: str, schema: List[FieldSchema]) -> ast.AsyncFunctionDef:
    return function_def(
        "list",
        arguments([arg("self")]),
        [ast.Return(value=ast.Await(value=_self_call("snapshot", [name(class_name)])))],
        returns=subscript("typing.List", name(class_name)),
    )


def render_actor_observe(class_name: str, schema: List[FieldSchema]) -> ast.FunctionDef:
    # Returns the runtime stream itself so that aclose() on it tears the
    # subscription down immediately.
    changes = _self_call(
        "changes",
        [name(class_name)],
        [ast.keyword(arg="loop", value=name("loop"))],
    )
    return function_def(
        "observe",
        arguments(
            [arg("self")],
            [arg("loop", optional(dotted("asyncio.AbstractEventLoop")))],
            [ast.Constant(value=None)],
        ),
        [ast.Return(value=changes)],
        returns=subscript("typing.AsyncIterator", subscript("typing.List", name(class_name))),
        is_async=False,
    )


def render_actor_class(
    class_name: str,
    actor_name: str,
    schema: List[FieldSchema],
    methods: List[ast.stmt],
) -> ast.ClassDef:
    """Assemble the peer class around already rendered methods."""
    primary_key = next((f.name for f in schema if f.primary_key), None)
    header: List[ast.stmt] = [
        docstring(f"Serialized storage access for {class_name} records."),
        make(ast.Assign, targets=[name("model", ast.Store())], value=name(class_name)),
        make(
            ast.Assign,
            targets=[name("fields", ast.Store())],
            value=ast.Tuple(elts=[ast.Constant(value=f.name) for f in schema], ctx=ast.Load()),
        ),
        make(ast.Assign, targets=[name("primary_key", ast.Store())], value=ast.Constant(value=primary_key)),
    ]
    return make(
        ast.ClassDef,
        name=actor_name,
        bases=[name(RUNTIME_BASE)],
        body=header + methods,
    )
