"""Member operations attached to the model class.

Each one opens a fresh peer actor and forwards to its same-named method, so
every storage touch goes through the actor's lock.
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
    dotted,
    forward_keywords,
    function_def,
    make,
    name,
    optional,
    subscript,
)


def _field_names(schema: List[FieldSchema]) -> List[str]:
    return [field.name for field in schema]


def _in_actor(actor_name: str, body: List[ast.stmt]) -> ast.AsyncWith:
    """``async with <Actor>() as actor: <body>``"""
    return async_with(call(name(actor_name)), body, target="actor")


def _actor_call(method: str, args=(), keywords=()) -> ast.Await:
    return ast.Await(value=call(attribute(name("actor"), method), args, keywords))


def render_create(class_name: str, actor_name: str, schema: List[FieldSchema]) -> ast.AsyncFunctionDef:
    params = [arg(f.name, annotation_node(f.annotation)) for f in schema]
    body = [_in_actor(actor_name, [
        ast.Return(value=_actor_call("create", keywords=forward_keywords(_field_names(schema)))),
    ])]
    return function_def(
        "create",
        arguments([arg("cls")], params),
        body,
        returns=name(class_name),
        decorators=["classmethod"],
    )


def render_update(class_name: str, actor_name: str, schema: List[FieldSchema]) -> ast.AsyncFunctionDef:
    params = [arg(f.name, optional(annotation_node(f.annotation))) for f in schema]
    defaults = [ast.Constant(value=None) for _ in schema]
    body = [_in_actor(actor_name, [
        ast.Expr(value=_actor_call("update", [name("self")], forward_keywords(_field_names(schema)))),
    ])]
    return function_def(
        "update",
        arguments([arg("self")], params, defaults),
        body,
        returns=ast.Constant(value=None),
    )


def render_delete(class_name: str, actor_name: str, schema: List[FieldSchema]) -> ast.AsyncFunctionDef:
    body = [_in_actor(actor_name, [
        ast.Expr(value=_actor_call("delete", [name("self")])),
    ])]
    return function_def("delete", arguments([arg("self")]), body, returns=ast.Constant(value=None))


def render_list(class_name: str, actor_name: str, schema: List[FieldSchema]) -> ast.AsyncFunctionDef:
    body = [_in_actor(actor_name, [ast.Return(value=_actor_call("list"))])]
    return function_def(
        "list",
        arguments([arg("cls")]),
        body,
        returns=subscript("typing.List", name(class_name)),
        decorators=["classmethod"],
    )


def render_observe(class_name: str, actor_name: str, schema: List[FieldSchema]) -> ast.AsyncFunctionDef:
    loop = arg("loop", optional(dotted("asyncio.AbstractEventLoop")))
    stream = call(
        attribute(name("actor"), "observe"),
        keywords=[ast.keyword(arg="loop", value=name("loop"))],
    )
    relay = make(
        ast.AsyncFor,
        target=name("snapshot", ast.Store()),
        iter=stream,
        body=[ast.Expr(value=ast.Yield(value=name("snapshot")))],
    )
    return function_def(
        "observe",
        arguments([arg("cls")], [loop], [ast.Constant(value=None)]),
        [_in_actor(actor_name, [relay])],
        returns=subscript("typing.AsyncIterator", subscript("typing.List", name(class_name))),
        decorators=["classmethod"],
    )
