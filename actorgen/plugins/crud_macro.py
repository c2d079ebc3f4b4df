import logging

from actorgen.generators.crud_gen.declarations import AttributeKind, ClassDeclaration, DeclarationKind
from actorgen.generators.crud_gen.errors import StructuralMismatch
from actorgen.generators.crud_gen.extract import extract_schema
from actorgen.generators.crud_gen.synthesize import synthesize
from actorgen.generators.crud_gen.types import GeneratedArtifact
from actorgen.plugins.base import BaseMacro, MacroContext

log = logging.getLogger(__name__)


class CrudActorMacro(BaseMacro):
    """``@gen_crud``: CRUD/observe forwarders plus a ``<Name>Actor`` peer."""
    marker = AttributeKind.GEN_CRUD

    def expand(self, declaration: ClassDeclaration, context: MacroContext) -> GeneratedArtifact:
        if declaration.kind is not DeclarationKind.CLASS:
            raise StructuralMismatch(
                f"@gen_crud needs a class, got a {declaration.kind.value} declaration",
                declaration.name,
                line=declaration.line,
            )

        schema = extract_schema(declaration, strict_generics=context.strict_generics)
        log.info(
            "Expanding with %d persisted fields", len(schema),
            extra={"declaration": declaration.name, "stage": "synthesize"},
        )
        return synthesize(declaration.name, schema, actor_suffix=context.actor_suffix)
