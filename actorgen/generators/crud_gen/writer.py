"""Writes expanded modules to disk."""
import logging
from pathlib import Path
from typing import List

from actorgen.generators.crud_gen.types import GeneratedFile

log = logging.getLogger(__name__)


def write_files(files: List[GeneratedFile], out_dir: Path) -> List[Path]:
    """
    Write expanded modules under ``out_dir``.

    A file whose content on disk already matches is left alone, so build
    tools watching modification times see no change.

    Args:
        files: Expanded modules, paths relative to out_dir
        out_dir: Output directory, created if missing

    Returns:
        Paths that were actually written
    """
    out_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for file in files:
        target = out_dir / file.path
        if target.is_file() and target.read_text(encoding="utf-8") == file.content:
            log.debug("Unchanged %s", target, extra={"stage": "write"})
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(file.content, encoding="utf-8")
        log.info("Wrote %s", target, extra={"stage": "write"})
        written.append(target)
    return written
