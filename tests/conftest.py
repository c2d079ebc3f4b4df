import logging
import textwrap

import pytest

import memory_storage
from actorgen.core.config import get_settings

TODO_SOURCE = textwrap.dedent('''
    """Todo models."""
    from typing import List, Optional

    from actorgen import gen_crud, persisted


    class ObjectId(str):
        pass


    @gen_crud
    class Todo:
        _id: ObjectId = persisted(primary_key=True)
        name: str = persisted()
        owner: str = persisted()
        status: str = persisted()
        ignored: Optional[str] = None
''')


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def restore_logging():
    """configure_logging replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def todo_source():
    return TODO_SOURCE


@pytest.fixture
def memory_database(monkeypatch):
    """Shared in-memory database behind the default storage opener."""
    database = memory_storage.MemoryDatabase()
    monkeypatch.setattr(memory_storage, "DATABASE", database)
    monkeypatch.setenv("ACTORGEN_STORAGE_OPENER", "memory_storage:open_memory_storage")
    get_settings.cache_clear()
    return database
