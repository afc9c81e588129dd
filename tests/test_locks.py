# tests/test_locks.py
import asyncio

import pytest

from meetings_attendance.services.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLock()
    order = []

    async def worker(name: str) -> None:
        async with locks.hold("session-1"):
            order.append(f"{name}-start")
            await asyncio.sleep(0.01)
            order.append(f"{name}-end")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (
        ["a-start", "a-end", "b-start", "b-end"],
        ["b-start", "b-end", "a-start", "a-end"],
    )


@pytest.mark.asyncio
async def test_different_keys_do_not_block_each_other():
    locks = KeyedLock()

    async def nested() -> str:
        async with locks.hold(1):
            async with locks.hold(2):
                return "done"

    assert await asyncio.wait_for(nested(), timeout=1) == "done"


@pytest.mark.asyncio
async def test_lock_is_released_after_error():
    locks = KeyedLock()

    with pytest.raises(RuntimeError):
        async with locks.hold("session-1"):
            raise RuntimeError("boom")

    async def reacquire() -> bool:
        async with locks.hold("session-1"):
            return True

    assert await asyncio.wait_for(reacquire(), timeout=1)
