"""Unit tests for SingleFlight."""

import asyncio

import pytest

from semantic_bookmarks.common.single_flight import SingleFlight

pytestmark = pytest.mark.unit


class TestSingleFlight:
    def test_concurrent_calls_share_one_execution(self):
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return "done"

        async def scenario():
            flight = SingleFlight()
            return await asyncio.gather(*(flight.run("k", work) for _ in range(5)))

        assert asyncio.run(scenario()) == ["done"] * 5
        assert calls == 1

    def test_different_keys_run_independently(self):
        calls = []

        async def scenario():
            flight = SingleFlight()

            async def work(key):
                calls.append(key)
                await asyncio.sleep(0)
                return key

            return await asyncio.gather(
                flight.run("a", lambda: work("a")), flight.run("b", lambda: work("b"))
            )

        assert asyncio.run(scenario()) == ["a", "b"]
        assert sorted(calls) == ["a", "b"]

    def test_key_released_after_completion(self):
        calls = 0

        async def work():
            nonlocal calls
            calls += 1
            return calls

        async def scenario():
            flight = SingleFlight()
            first = await flight.run("k", work)
            await asyncio.sleep(0)
            assert not flight.in_flight("k")
            second = await flight.run("k", work)
            return first, second

        assert asyncio.run(scenario()) == (1, 2)

    def test_failure_shared_and_key_released(self):
        attempts = 0

        async def failing():
            nonlocal attempts
            attempts += 1
            await asyncio.sleep(0.01)
            raise RuntimeError("boom")

        async def scenario():
            flight = SingleFlight()
            results = await asyncio.gather(
                flight.run("k", failing), flight.run("k", failing), return_exceptions=True
            )
            await asyncio.sleep(0)
            return results, flight.in_flight("k")

        results, still_running = asyncio.run(scenario())

        assert attempts == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert still_running is False
