"""Run the expanded Todo module against the in-memory storage."""
import asyncio

import pytest

from actorgen.generators.crud_gen.generator import expand_source
from actorgen.runtime import (
    ActorClosedError,
    ActorState,
    EventLoopMismatch,
    RecordNotFound,
    StorageConfiguration,
    StorageNotConfigured,
)
from actorgen.runtime.storage import load_opener
from memory_storage import MemoryStorage


@pytest.fixture
def models(todo_source):
    """Namespace of the expanded Todo module."""
    namespace = {"__name__": "todo_models"}
    exec(compile(expand_source(todo_source).source, "todo_models.py", "exec"), namespace)
    return namespace


def _create(models, key="1", name="write tests", owner="ana", status="open"):
    return models["Todo"].create(_id=models["ObjectId"](key), name=name, owner=owner, status=status)


async def _create_with(actor, models, key="1"):
    return await actor.create(_id=models["ObjectId"](key), name="n", owner="ana", status="open")


class TestCrud:
    """Model-level operations forwarded through fresh actors."""

    def test_create_then_list(self, models, memory_database):
        Todo = models["Todo"]

        async def scenario():
            todo = await _create(models)
            return todo, await Todo.list()

        todo, listed = asyncio.run(scenario())
        assert listed == [todo]
        assert (todo._id, todo.name, todo.owner, todo.status) == ("1", "write tests", "ana", "open")

    def test_update_changes_only_given_fields(self, models, memory_database):
        async def scenario():
            todo = await _create(models)
            await todo.update(status="done")
            return todo

        todo = asyncio.run(scenario())
        assert todo.status == "done"
        assert (todo.name, todo.owner) == ("write tests", "ana")

    def test_update_with_no_fields_changes_nothing(self, models, memory_database):
        async def scenario():
            todo = await _create(models)
            await todo.update()
            return todo

        todo = asyncio.run(scenario())
        assert (todo.name, todo.owner, todo.status) == ("write tests", "ana", "open")

    def test_delete_removes_record(self, models, memory_database):
        Todo = models["Todo"]

        async def scenario():
            keep = await _create(models, key="1")
            drop = await _create(models, key="2")
            await drop.delete()
            return keep, await Todo.list()

        keep, listed = asyncio.run(scenario())
        assert listed == [keep]

    def test_each_call_opens_and_closes_its_own_storage(self, models, memory_database):
        async def scenario():
            todo = await _create(models)
            await todo.update(name="renamed")
            await models["Todo"].list()

        asyncio.run(scenario())
        assert memory_database.opened == 3
        assert memory_database.closed == 3

    def test_update_of_deleted_record_is_not_found(self, models, memory_database):
        async def scenario():
            todo = await _create(models)
            await todo.delete()
            await todo.update(name="gone")

        with pytest.raises(RecordNotFound):
            asyncio.run(scenario())
        assert memory_database.rows(models["Todo"]) == []

    def test_missing_storage_opener(self, models, monkeypatch):
        monkeypatch.delenv("ACTORGEN_STORAGE_OPENER", raising=False)
        with pytest.raises(StorageNotConfigured):
            asyncio.run(models["Todo"].list())


class TestActor:
    """Direct use of the generated peer actor."""

    def test_record_from_another_handle_is_handed_off(self, models, memory_database):
        TodoActor = models["TodoActor"]

        async def scenario():
            async with TodoActor() as writer:
                todo = await _create_with(writer, models)
            async with TodoActor() as editor:
                assert not editor._storage.owns(todo)
                await editor.update(todo, owner="ben")
            return todo

        assert asyncio.run(scenario()).owner == "ben"

    def test_concurrent_calls_are_serialized(self, models, memory_database):
        TodoActor = models["TodoActor"]

        async def scenario():
            async with TodoActor() as actor:
                await asyncio.gather(*[
                    _create_with(actor, models, key=str(i)) for i in range(5)
                ])
                return await actor.list()

        assert sorted(todo._id for todo in asyncio.run(scenario())) == ["0", "1", "2", "3", "4"]

    def test_closed_actor_rejects_calls(self, models, memory_database):
        TodoActor = models["TodoActor"]

        async def scenario():
            actor = TodoActor()
            await actor.open()
            await actor.close()
            await actor.close()
            assert actor.state is ActorState.CLOSED
            await actor.list()

        with pytest.raises(ActorClosedError):
            asyncio.run(scenario())
        assert memory_database.closed == 1

    def test_caller_owned_storage_is_left_open(self, models, memory_database):
        storage = MemoryStorage(memory_database)

        async def scenario():
            async with models["TodoActor"](storage=storage) as actor:
                await _create_with(actor, models)

        asyncio.run(scenario())
        assert not storage.is_closed
        assert memory_database.opened == 0

    def test_explicit_synchronous_opener(self, models, memory_database):
        configuration = StorageConfiguration(name="local", opener=lambda c: MemoryStorage(memory_database))

        async def scenario():
            async with models["TodoActor"](configuration=configuration) as actor:
                await _create_with(actor, models)
                return await actor.list()

        assert len(asyncio.run(scenario())) == 1


class TestObserve:
    """Change streams."""

    def test_actor_stream_yields_initial_then_updates(self, models, memory_database):
        TodoActor = models["TodoActor"]

        async def scenario():
            async with TodoActor() as actor:
                stream = actor.observe(loop=asyncio.get_running_loop())
                initial = await stream.__anext__()
                todo = await _create_with(actor, models)
                after_create = await stream.__anext__()
                await actor.update(todo, status="done")
                after_update = await stream.__anext__()
                await stream.aclose()
                return initial, after_create, after_update, todo

        initial, after_create, after_update, todo = asyncio.run(scenario())
        assert initial == []
        assert after_create == [todo]
        assert after_update == [todo]

    def test_closing_stream_invalidates_token_once(self, models, memory_database):
        async def scenario():
            async with models["TodoActor"]() as actor:
                stream = actor.observe()
                await stream.__anext__()
                await stream.aclose()

        asyncio.run(scenario())
        [token] = memory_database.tokens
        assert token.invalidations == 1
        assert memory_database.observers[models["Todo"]] == []

    def test_closing_actor_ends_live_streams(self, models, memory_database):
        async def scenario():
            actor = models["TodoActor"]()
            stream = actor.observe()
            await stream.__anext__()
            await actor.close()
            with pytest.raises(StopAsyncIteration):
                await stream.__anext__()

        asyncio.run(scenario())
        [token] = memory_database.tokens
        assert token.invalidations == 1

    def test_storage_error_ends_stream(self, models, memory_database):
        async def scenario():
            async with models["TodoActor"]() as actor:
                stream = actor.observe()
                await stream.__anext__()
                memory_database.fail(models["Todo"], RuntimeError("disk gone"))
                with pytest.raises(StopAsyncIteration):
                    await stream.__anext__()

        asyncio.run(scenario())
        [token] = memory_database.tokens
        assert token.invalidations == 1

    def test_model_stream_sees_changes_from_other_actors(self, models, memory_database):
        Todo = models["Todo"]

        async def scenario():
            stream = Todo.observe()
            initial = await stream.__anext__()
            todo = await _create(models)
            after_create = await stream.__anext__()
            await stream.aclose()
            return initial, after_create, todo

        initial, after_create, todo = asyncio.run(scenario())
        assert initial == []
        assert after_create == [todo]
        [token] = memory_database.tokens
        assert token.invalidations == 1

    def test_stream_rejects_a_loop_it_is_not_iterated_on(self, models, memory_database):
        other_loop = asyncio.new_event_loop()

        async def scenario():
            async with models["TodoActor"]() as actor:
                stream = actor.observe(loop=other_loop)
                with pytest.raises(EventLoopMismatch):
                    await stream.__anext__()

        try:
            asyncio.run(scenario())
        finally:
            other_loop.close()
        assert memory_database.tokens == []

    def test_cancelling_actor_consumer_invalidates_token_once(self, models, memory_database):
        async def scenario():
            async with models["TodoActor"]() as actor:
                task, seen = await _consume_until_initial(actor.observe())
                task.cancel()
                with pytest.raises(asyncio.CancelledError):
                    await task
                assert memory_database.tokens[0].invalidations == 1
            return seen

        assert asyncio.run(scenario()) == [[]]
        [token] = memory_database.tokens
        assert token.invalidations == 1
        assert memory_database.observers[models["Todo"]] == []

    def test_cancelling_model_consumer_invalidates_token_once(self, models, memory_database):
        async def scenario():
            task, _ = await _consume_until_initial(models["Todo"].observe())
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        [token] = memory_database.tokens
        assert token.invalidations == 1
        assert memory_database.observers[models["Todo"]] == []
        assert memory_database.closed == 1


async def _consume_until_initial(stream):
    """Start a task iterating ``stream`` and wait until it is blocked after the first snapshot."""
    seen = []

    async def consume():
        async for snapshot in stream:
            seen.append(snapshot)

    task = asyncio.create_task(consume())
    while not seen:
        await asyncio.sleep(0)
    return task, seen


def test_load_opener_rejects_bad_paths():
    with pytest.raises(StorageNotConfigured):
        load_opener("memory_storage")
    with pytest.raises(StorageNotConfigured):
        load_opener("memory_storage:no_such_opener")
