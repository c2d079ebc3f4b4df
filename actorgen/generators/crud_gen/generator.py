"""Orchestrator for module expansion."""
import ast
import copy
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

from actorgen.core.config import get_settings
from actorgen.generators.crud_gen.declarations import AttributeKind
from actorgen.generators.crud_gen.errors import ExpansionError, StructuralMismatch
from actorgen.generators.crud_gen.frontend import (
    Aliases,
    declaration_from_node,
    import_aliases,
    parse_attribute,
)
from actorgen.generators.crud_gen.types import (
    Diagnostic,
    ExpansionResult,
    GeneratedArtifact,
    GeneratedFile,
    Severity,
)
from actorgen.generators.crud_gen.utils import make
from actorgen.generators.crud_gen.writer import write_files
from actorgen.plugins.base import BaseMacro, MacroContext
from actorgen.plugins.registry import MacroRegistry

log = logging.getLogger(__name__)

# Imports every expanded module needs, as (module, name-or-None)
RUNTIME_IMPORTS = [
    ("asyncio", None),
    ("typing", None),
    ("actorgen.runtime", "ModelActor"),
]


def default_context() -> MacroContext:
    settings = get_settings()
    return MacroContext(actor_suffix=settings.actor_suffix, strict_generics=settings.strict_generics)


def _marker_macro(
    node: ast.stmt,
    registry: MacroRegistry,
    aliases: Aliases,
) -> Tuple[Optional[BaseMacro], Optional[ast.expr]]:
    """First registered marker on ``node`` and the decorator carrying it."""
    for decorator in getattr(node, "decorator_list", []):
        attribute = parse_attribute(decorator, aliases)
        if attribute.kind is AttributeKind.OTHER:
            continue
        macro = registry.get(attribute.kind)
        if macro is not None:
            return macro, decorator
    return None, None


def _diagnostic(error: ExpansionError, severity: Severity) -> Diagnostic:
    return Diagnostic(
        severity=severity,
        declaration=error.declaration,
        member=error.member,
        message=error.message,
        line=error.line,
    )


def _splice(node: ast.ClassDef, marker: ast.expr, artifact: GeneratedArtifact) -> Tuple[ast.ClassDef, List[Diagnostic]]:
    """Copy of ``node`` without the marker and with generated members appended."""
    expanded = copy.deepcopy(node)
    position = next(i for i, d in enumerate(node.decorator_list) if d is marker)
    del expanded.decorator_list[position]

    existing = {
        statement.name for statement in node.body
        if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef))
    }
    diagnostics = []
    for member in artifact.members:
        if member.name in existing:
            diagnostics.append(Diagnostic(
                severity=Severity.WARNING,
                declaration=node.name,
                member=member.name,
                message=f"generated '{member.name}' replaces the existing definition",
                line=node.lineno,
            ))
        expanded.body.append(copy.deepcopy(member.node))
    return expanded, diagnostics


def _has_import(body: List[ast.stmt], module: str, name: Optional[str]) -> bool:
    for statement in body:
        if name is None and isinstance(statement, ast.Import):
            if any(alias.name == module and alias.asname is None for alias in statement.names):
                return True
        if name is not None and isinstance(statement, ast.ImportFrom) and statement.module == module:
            if any(alias.name == name and alias.asname is None for alias in statement.names):
                return True
    return False


def _add_imports(module: ast.Module) -> None:
    """Insert the future import and runtime imports at the top of ``module``."""
    body = module.body
    index = 0
    if body and isinstance(body[0], ast.Expr) and isinstance(body[0].value, ast.Constant) \
            and isinstance(body[0].value.value, str):
        index = 1

    if not _has_import(body, "__future__", "annotations"):
        body.insert(index, make(ast.ImportFrom, module="__future__", names=[make(ast.alias, name="annotations")], level=0))

    while index < len(body) and isinstance(body[index], ast.ImportFrom) and body[index].module == "__future__":
        index += 1

    for module_name, name in RUNTIME_IMPORTS:
        if _has_import(body, module_name, name):
            continue
        if name is None:
            statement = make(ast.Import, names=[make(ast.alias, name=module_name)])
        else:
            statement = make(ast.ImportFrom, module=module_name, names=[make(ast.alias, name=name)], level=0)
        body.insert(index, statement)
        index += 1


def expand_module(
    module: ast.Module,
    context: Optional[MacroContext] = None,
    registry: Optional[MacroRegistry] = None,
    raise_on_error: bool = False,
) -> ExpansionResult:
    """
    Expand every marked top-level declaration of a parsed module.

    Args:
        module: Parsed module; left untouched
        context: Macro options; defaults come from Settings
        registry: Marker to macro mapping; MacroRegistry.default() if omitted
        raise_on_error: Re-raise the first fatal ExpansionError instead of
            recording it as a diagnostic

    Returns:
        ExpansionResult with the expanded source, artifacts and diagnostics
    """
    context = context or default_context()
    registry = registry or MacroRegistry.default()

    aliases = import_aliases(module)
    result = ExpansionResult(source="")
    body: List[ast.stmt] = []
    for statement in module.body:
        macro, marker = _marker_macro(statement, registry, aliases)
        if macro is None:
            body.append(copy.deepcopy(statement))
            continue

        declaration = declaration_from_node(statement, aliases=aliases)
        extra = {"declaration": declaration.name, "stage": "splice"}
        try:
            artifact = macro.expand(declaration, context)
        except StructuralMismatch as e:
            log.warning("Skipping declaration: %s", e.message, extra=extra)
            result.diagnostics.append(_diagnostic(e, Severity.WARNING))
            body.append(copy.deepcopy(statement))
            continue
        except ExpansionError as e:
            if raise_on_error:
                raise
            log.error("Expansion failed: %s", e, extra=extra)
            result.diagnostics.append(_diagnostic(e, Severity.ERROR))
            body.append(copy.deepcopy(statement))
            continue

        expanded, diagnostics = _splice(statement, marker, artifact)
        result.diagnostics.extend(diagnostics)
        result.artifacts.append(artifact)
        body.append(expanded)
        if artifact.peer is not None:
            body.append(copy.deepcopy(artifact.peer.node))
        log.info("Generated %s", ", ".join(artifact.member_names), extra=extra)

    expanded_module = ast.Module(body=body, type_ignores=[])
    if result.artifacts:
        _add_imports(expanded_module)
    result.source = ast.unparse(ast.fix_missing_locations(expanded_module)) + "\n"
    return result


def expand_source(
    source: str,
    filename: str = "<string>",
    context: Optional[MacroContext] = None,
    registry: Optional[MacroRegistry] = None,
    raise_on_error: bool = False,
) -> ExpansionResult:
    """Parse ``source`` and expand it; see expand_module."""
    module = ast.parse(source, filename=filename)
    return expand_module(module, context=context, registry=registry, raise_on_error=raise_on_error)


def syntax_error_result(source: str, error: SyntaxError) -> ExpansionResult:
    """Unexpanded result carrying ``error`` as a module-level diagnostic."""
    result = ExpansionResult(source=source)
    result.diagnostics.append(Diagnostic(
        severity=Severity.ERROR,
        declaration="<module>",
        message=error.msg,
        line=error.lineno or 0,
    ))
    return result


def output_paths(sources: List[Path]) -> List[str]:
    """Posix paths of ``sources`` relative to their common parent directory."""
    if not sources:
        return []
    resolved = [source.resolve() for source in sources]
    root = Path(os.path.commonpath([str(path.parent) for path in resolved]))
    return [path.relative_to(root).as_posix() for path in resolved]


def expand_files(
    sources: List[Path],
    out_dir: Optional[Path] = None,
    context: Optional[MacroContext] = None,
) -> List[Tuple[GeneratedFile, ExpansionResult]]:
    """
    Expand source files, writing them under ``out_dir`` when given.

    Output paths keep each source's location relative to the deepest
    directory shared by all sources, so same-named modules from different
    packages do not collide. Files with error diagnostics, including ones
    that do not parse, are still returned but never written.
    """
    outputs = []
    for source_path, relative in zip(sources, output_paths(sources)):
        text = source_path.read_text(encoding="utf-8")
        try:
            result = expand_source(text, filename=str(source_path), context=context)
        except SyntaxError as e:
            log.error("Cannot parse %s: %s", source_path, e.msg, extra={"stage": "parse"})
            result = syntax_error_result(text, e)
        outputs.append((GeneratedFile(path=relative, content=result.source), result))

    if out_dir is not None:
        write_files([file for file, result in outputs if result.ok], out_dir)
    return outputs
