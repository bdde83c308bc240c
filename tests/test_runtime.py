import asyncio
import unittest

from genpipe import DisposedException, spawn


class TestFiber(unittest.IsolatedAsyncioTestCase):
    async def test_fiber_success_and_await(self):
        fiber = spawn(_async_const(1))
        exit_ = await fiber.await_()
        self.assertTrue(exit_.success)
        self.assertEqual(exit_.value, 1)
        self.assertEqual(fiber.status, "done")
        self.assertEqual(await fiber.join(), 1)

    async def test_fiber_failure_maps_to_cause_fail(self):
        fiber = spawn(_async_raise(ValueError("nope")))
        ex = await fiber.await_()
        self.assertFalse(ex.success)
        self.assertEqual(ex.cause.kind, "fail")
        self.assertIsInstance(ex.cause.error, ValueError)
        self.assertIn("Fail(ValueError('nope'))", ex.cause.render())
        self.assertEqual(fiber.status, "failed")
        with self.assertRaises(ValueError):
            await fiber.join()

    async def test_disposal_maps_to_cause_dispose(self):
        fiber = spawn(_async_raise(DisposedException()))
        ex = await fiber.await_()
        self.assertEqual(ex.cause.kind, "dispose")
        self.assertEqual(fiber.status, "disposed")
        self.assertEqual(ex.cause.render(), "Disposed\n")

    async def test_fiber_interrupt(self):
        fiber = spawn(asyncio.sleep(1))
        await asyncio.sleep(0)
        fiber.interrupt()
        ex = await fiber.await_()
        self.assertFalse(ex.success)
        self.assertEqual(ex.cause.kind, "interrupt")
        self.assertEqual(fiber.status, "cancelled")

    async def test_on_exit_callbacks(self):
        fiber = spawn(_async_const("v"))
        seen = []
        fiber.on_exit(lambda e: seen.append(("early", e.value)))
        await fiber.await_()
        fiber.on_exit(lambda e: seen.append(("late", e.value)))
        self.assertEqual(seen, [("early", "v"), ("late", "v")])


async def _async_const(x):
    await asyncio.sleep(0)
    return x


async def _async_raise(ex):
    await asyncio.sleep(0)
    raise ex


class TestSpawnWithoutLoop(unittest.TestCase):
    def test_spawn_closes_coroutine(self):
        coro = _async_const(1)
        with self.assertRaises(RuntimeError):
            spawn(coro)
        self.assertIsNone(coro.cr_frame)
