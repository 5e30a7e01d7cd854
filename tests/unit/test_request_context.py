"""Request-scoped context (contextvars) is isolated and always reset."""

import asyncio

import pytest

from app.infrastructure.security import ContextActorProvider
from app.shared.context import (
    ActorContext,
    clear_current_user,
    get_actor_context,
    get_current_actor_id,
    get_current_actor_type,
    get_current_trace_id,
    get_request_metadata,
    request_scope,
    set_current_user,
)
from app.shared.enums import ActorType
from tests.conftest import make_metadata


def test_scope_binds_and_resets() -> None:
    metadata = make_metadata("trace-a")
    with request_scope(metadata, user_id="u1") as bound:
        assert bound is metadata
        assert get_request_metadata() is metadata
        assert get_current_trace_id() == "trace-a"
        assert get_current_actor_id() == "u1"
        assert get_current_actor_type() == ActorType.USER
    assert get_request_metadata() is None
    assert get_current_actor_id() is None
    assert get_current_actor_type() == ActorType.SYSTEM


def test_scope_resets_on_exception() -> None:
    with pytest.raises(RuntimeError):
        with request_scope(make_metadata(), user_id="u1"):
            raise RuntimeError("handler failed")
    assert get_request_metadata() is None
    assert get_current_actor_id() is None


def test_nested_scope_restores_outer() -> None:
    outer = make_metadata("outer")
    with request_scope(outer):
        with request_scope(make_metadata("inner"), user_id="u2"):
            assert get_current_trace_id() == "inner"
        assert get_request_metadata() is outer
        assert get_current_actor_id() is None


def test_user_actor_requires_user_id() -> None:
    with pytest.raises(ValueError):
        with request_scope(make_metadata(), actor_type=ActorType.USER):
            pass


async def test_concurrent_tasks_do_not_share_context() -> None:
    seen: dict[str, str | None] = {}
    started = asyncio.Event()

    async def handle(trace_id: str) -> None:
        with request_scope(make_metadata(trace_id), user_id=f"user-{trace_id}"):
            if trace_id == "a":
                started.set()
            else:
                await started.wait()
            await asyncio.sleep(0)
            seen[trace_id] = get_current_trace_id()

    await asyncio.gather(handle("a"), handle("b"))
    assert seen == {"a": "a", "b": "b"}
    assert get_request_metadata() is None


async def test_authentication_layer_binds_actor_inside_scope() -> None:
    metadata = make_metadata("trace-auth")

    async def handler() -> ActorContext:
        # runs in its own task, as a request handler would
        set_current_user("u7")
        return get_actor_context()

    with request_scope(metadata):
        snapshot = await asyncio.create_task(handler())
        assert get_current_actor_id() is None
    assert snapshot == ActorContext(user_id="u7", actor_type=ActorType.USER, request=metadata)


def test_set_current_user_requires_id_for_users() -> None:
    with pytest.raises(ValueError):
        set_current_user(None)


def test_clear_current_user_resets_to_system() -> None:
    with request_scope(make_metadata(), user_id="u1"):
        clear_current_user()
        assert get_current_actor_id() is None
        assert get_current_actor_type() == ActorType.SYSTEM
        assert ContextActorProvider().get_current_actor_id() is None
