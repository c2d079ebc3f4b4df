"""Operation synthesis: schema + class name -> GeneratedArtifact."""
import logging
from typing import Callable, Dict, List

from actorgen.generators.crud_gen.render import (
    render_create,
    render_delete,
    render_list,
    render_observe,
    render_update,
)
from actorgen.generators.crud_gen.render_actor import (
    render_actor_class,
    render_actor_create,
    render_actor_delete,
    render_actor_list,
    render_actor_observe,
    render_actor_update,
)
from actorgen.generators.crud_gen.types import (
    FieldSchema,
    GeneratedArtifact,
    GeneratedDeclaration,
    OperationKind,
)
from actorgen.generators.crud_gen.utils import render

log = logging.getLogger(__name__)

MEMBER_RENDERERS: Dict[OperationKind, Callable] = {
    OperationKind.CREATE: render_create,
    OperationKind.UPDATE: render_update,
    OperationKind.DELETE: render_delete,
    OperationKind.LIST: render_list,
    OperationKind.OBSERVE: render_observe,
}

ACTOR_RENDERERS: Dict[OperationKind, Callable] = {
    OperationKind.CREATE: render_actor_create,
    OperationKind.UPDATE: render_actor_update,
    OperationKind.DELETE: render_actor_delete,
    OperationKind.LIST: render_actor_list,
    OperationKind.OBSERVE: render_actor_observe,
}


def _check_exhaustive(table: Dict[OperationKind, Callable], label: str) -> None:
    missing = set(OperationKind) - set(table)
    if missing:
        names = ", ".join(sorted(kind.value for kind in missing))
        raise RuntimeError(f"{label} has no renderer for: {names}")


_check_exhaustive(MEMBER_RENDERERS, "MEMBER_RENDERERS")
_check_exhaustive(ACTOR_RENDERERS, "ACTOR_RENDERERS")


def actor_name_for(class_name: str, suffix: str = "Actor") -> str:
    return f"{class_name}{suffix}"


def synthesize(class_name: str, schema: List[FieldSchema], actor_suffix: str = "Actor") -> GeneratedArtifact:
    """
    Render the member forwarders and the peer actor for one model class.

    Args:
        class_name: Name of the annotated class
        schema: Fields produced by extract_schema
        actor_suffix: Suffix appended to class_name to name the peer

    Returns:
        GeneratedArtifact with one member per OperationKind, in enum order
    """
    actor_name = actor_name_for(class_name, actor_suffix)

    members = []
    for kind in OperationKind:
        node = MEMBER_RENDERERS[kind](class_name, actor_name, schema)
        members.append(GeneratedDeclaration(name=node.name, node=node, source=render(node)))

    methods = [ACTOR_RENDERERS[kind](class_name, schema) for kind in OperationKind]
    peer_node = render_actor_class(class_name, actor_name, schema, methods)
    peer = GeneratedDeclaration(name=actor_name, node=peer_node, source=render(peer_node))

    log.debug(
        "Synthesized %d operations and %s", len(members), actor_name,
        extra={"declaration": class_name, "stage": "synthesize"},
    )
    return GeneratedArtifact(class_name=class_name, members=tuple(members), peer=peer, schema=tuple(schema))
