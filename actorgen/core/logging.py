import logging
import sys

from actorgen.core.config import get_settings

# Extras set by the expander: the declaration being expanded and the pass
CONTEXT_FIELDS = ("declaration", "stage")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [declaration=%(declaration)s stage=%(stage)s] - %(message)s"


class ContextFormatter(logging.Formatter):
    """Formatter that tolerates records logged without expansion context."""
    def format(self, record):
        for field in CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, '-')
        return super().format(record)


def configure_logging(level: str | None = None, stream=None) -> None:
    """Route all logs to ``stream`` (stdout by default) at ``level`` or ACTORGEN_LOG_LEVEL."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(ContextFormatter(LOG_FORMAT))
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        handlers=[handler],
        force=True,
    )
