from dataclasses import dataclass
from typing import Optional

from actorgen.generators.crud_gen.declarations import AttributeKind, ClassDeclaration
from actorgen.generators.crud_gen.types import GeneratedArtifact


@dataclass
class MacroContext:
    """Per-run options handed to every macro."""
    actor_suffix: str = "Actor"
    strict_generics: bool = True


class BaseMacro:
    marker: AttributeKind

    def expand(self, declaration: ClassDeclaration, context: MacroContext) -> Optional[GeneratedArtifact]:
        raise NotImplementedError
