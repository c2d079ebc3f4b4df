"""Command line entry point: ``actorgen expand`` and ``actorgen schema``."""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from actorgen.core.logging import configure_logging
from actorgen.generators.crud_gen.generator import (
    default_context,
    expand_files,
    expand_source,
    syntax_error_result,
)
from actorgen.generators.crud_gen.types import ExpansionResult
from actorgen.schemas.reports import (
    DeclarationReport,
    DiagnosticReport,
    FieldReport,
    SchemaReport,
)


def build_report(source: str, result: ExpansionResult) -> SchemaReport:
    declarations = []
    for artifact in result.artifacts:
        declarations.append(DeclarationReport(
            name=artifact.class_name,
            actor=artifact.peer.name if artifact.peer else None,
            operations=artifact.member_names,
            fields=[
                FieldReport(name=f.name, type_signature=f.type_signature, primary_key=f.primary_key)
                for f in artifact.schema
            ],
        ))
    diagnostics = [
        DiagnosticReport(
            severity=d.severity.value,
            declaration=d.declaration,
            member=d.member,
            line=d.line,
            message=d.message,
        )
        for d in result.diagnostics
    ]
    return SchemaReport(source=source, declarations=declarations, diagnostics=diagnostics)


def _print_diagnostics(path: Path, result: ExpansionResult) -> None:
    for diagnostic in result.diagnostics:
        print(f"{path}:{diagnostic}", file=sys.stderr)


def _context(args: argparse.Namespace):
    context = default_context()
    if args.actor_suffix:
        context.actor_suffix = args.actor_suffix
    if args.lenient_generics:
        context.strict_generics = False
    return context


def cmd_expand(args: argparse.Namespace) -> int:
    sources = [Path(p) for p in args.sources]
    out_dir = None if args.check or args.output is None else Path(args.output)
    if out_dir is None and not args.check and len(sources) > 1:
        print("--output is required when expanding more than one file", file=sys.stderr)
        return 2

    outputs = expand_files(sources, out_dir=out_dir, context=_context(args))
    failed = False
    for path, (generated, result) in zip(sources, outputs):
        _print_diagnostics(path, result)
        failed = failed or not result.ok
        if out_dir is None and not args.check:
            sys.stdout.write(generated.content)
    return 1 if failed else 0


def cmd_schema(args: argparse.Namespace) -> int:
    path = Path(args.source)
    text = path.read_text(encoding="utf-8")
    try:
        result = expand_source(text, filename=str(path), context=_context(args))
    except SyntaxError as e:
        result = syntax_error_result(text, e)
    _print_diagnostics(path, result)
    print(build_report(str(path), result).model_dump_json(indent=2))
    return 0 if result.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="actorgen", description="Expand @gen_crud model classes.")
    parser.add_argument("--log-level", default=None, help="Override ACTORGEN_LOG_LEVEL")
    parser.add_argument("--actor-suffix", default=None, help="Suffix of generated peer classes")
    parser.add_argument(
        "--lenient-generics",
        action="store_true",
        help="Drop unresolvable generic arguments instead of failing",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    expand = subparsers.add_parser("expand", help="Write expanded modules")
    expand.add_argument("sources", nargs="+")
    expand.add_argument("-o", "--output", help="Output directory (stdout if omitted)")
    expand.add_argument("--check", action="store_true", help="Only report diagnostics")
    expand.set_defaults(func=cmd_expand)

    schema = subparsers.add_parser("schema", help="Print extracted schemas as JSON")
    schema.add_argument("source")
    schema.set_defaults(func=cmd_schema)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    # stdout carries expanded source and JSON reports
    configure_logging(args.log_level, stream=sys.stderr)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
