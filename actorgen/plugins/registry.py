from dataclasses import dataclass
from typing import Dict, Optional

from actorgen.generators.crud_gen.declarations import AttributeKind
from actorgen.plugins.base import BaseMacro
from actorgen.plugins.crud_macro import CrudActorMacro


@dataclass
class MacroRegistry:
    mapping: Dict[AttributeKind, BaseMacro]

    def get(self, marker: AttributeKind) -> Optional[BaseMacro]:
        return self.mapping.get(marker)

    @staticmethod
    def default() -> "MacroRegistry":
        return MacroRegistry(mapping={
            AttributeKind.GEN_CRUD: CrudActorMacro(),
        })
