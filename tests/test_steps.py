import asyncio
import unittest

from genpipe import AsyncGeneratorSteps, GeneratorSteps, ProtocolError, StepCoroutine, as_steps, is_step_coroutine


def adder():
    x = yield 1
    y = yield x + 1
    return y * 2


class TestGeneratorSteps(unittest.IsolatedAsyncioTestCase):
    async def test_send_and_return_value(self):
        s = GeneratorSteps(adder())
        self.assertEqual(await s.current(), 1)
        self.assertEqual(await s.current(), 1)
        self.assertEqual(await s.send(5), 6)
        self.assertFalse(s.finished)
        self.assertIsNone(await s.send(10))
        self.assertTrue(s.finished)
        self.assertEqual(s.result, 20)

    async def test_result_before_return_raises(self):
        s = GeneratorSteps(adder())
        await s.current()
        with self.assertRaises(ProtocolError):
            s.result

    async def test_throw_can_be_caught(self):
        def g():
            try:
                yield "a"
            except ValueError:
                yield "recovered"
        s = GeneratorSteps(g())
        await s.current()
        self.assertEqual(await s.throw(ValueError()), "recovered")

    async def test_uncaught_throw_finishes(self):
        s = GeneratorSteps(adder())
        await s.current()
        with self.assertRaises(KeyError):
            await s.throw(KeyError("k"))
        self.assertTrue(s.finished)

    async def test_close_runs_finally(self):
        cleaned = []
        def g():
            try:
                yield 1
            finally:
                cleaned.append(True)
        s = GeneratorSteps(g())
        await s.current()
        await s.close()
        self.assertEqual(cleaned, [True])
        self.assertTrue(s.finished)


class TestAsyncGeneratorSteps(unittest.IsolatedAsyncioTestCase):
    async def test_async_generator_steps(self):
        async def g():
            total = 0
            while total < 10:
                await asyncio.sleep(0)
                total += (yield total) or 0
        s = AsyncGeneratorSteps(g())
        self.assertEqual(await s.current(), 0)
        self.assertEqual(await s.send(4), 4)
        self.assertIsNone(await s.send(7))
        self.assertTrue(s.finished)
        self.assertIsNone(s.result)

    async def test_close_runs_finally(self):
        cleaned = []
        async def g():
            try:
                yield 1
            finally:
                cleaned.append(True)
        s = AsyncGeneratorSteps(g())
        await s.current()
        await s.close()
        self.assertEqual(cleaned, [True])


class _Countdown:
    def __init__(self, n: int):
        self.n = n
    @property
    def finished(self) -> bool:
        return self.n <= 0
    @property
    def result(self):
        return "liftoff"
    async def current(self):
        return self.n
    async def send(self, value):
        self.n -= 1
        return self.n if self.n > 0 else None
    async def throw(self, error):
        raise error
    async def close(self):
        self.n = 0


class _Unfinished(_Countdown):
    @property
    def result(self):
        if not self.finished:
            raise ProtocolError("still counting")
        return "liftoff"


class TestAsSteps(unittest.TestCase):
    def test_picks_adapter(self):
        self.assertIsInstance(as_steps(adder()), GeneratorSteps)
        async def ag():
            yield 1
        self.assertIsInstance(as_steps(ag()), AsyncGeneratorSteps)

    def test_custom_step_coroutine_passes_through(self):
        c = _Countdown(3)
        self.assertIsInstance(c, StepCoroutine)
        self.assertIs(as_steps(c), c)

    def test_result_property_is_not_evaluated(self):
        c = _Unfinished(2)
        self.assertTrue(is_step_coroutine(c))
        self.assertIs(as_steps(c), c)
        self.assertFalse(is_step_coroutine(object()))

    def test_rejects_non_generators(self):
        with self.assertRaises(TypeError):
            as_steps([1, 2, 3])
