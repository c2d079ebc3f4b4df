"""Build-time CRUD and actor generation for persisted model classes."""
from actorgen.runtime.markers import gen_crud, persisted

__version__ = "0.1.0"

__all__ = ["gen_crud", "persisted"]
