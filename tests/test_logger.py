import io
import json
import unittest

from genpipe import ConsoleLogger


class TestConsoleLogger(unittest.IsolatedAsyncioTestCase):
    async def test_level_filtering(self):
        buf = io.StringIO()
        log = ConsoleLogger("t", level="WARN", stream=buf)
        await log.info("hidden")
        await log.warn("shown", k=1)
        out = buf.getvalue()
        self.assertNotIn("hidden", out)
        self.assertIn("t WARN: shown k=1", out)

    async def test_json_output_with_bound_fields(self):
        buf = io.StringIO()
        log = ConsoleLogger("t", level="DEBUG", json_output=True, stream=buf).bind(generator="g")
        await log.debug("started", step=2)
        rec = json.loads(buf.getvalue())
        self.assertEqual(rec["level"], "DEBUG")
        self.assertEqual(rec["msg"], "started")
        self.assertEqual(rec["fields"], {"generator": "g", "step": 2})

    def test_set_level(self):
        log = ConsoleLogger()
        log.set_level("error")
        self.assertEqual(log.level_name, "ERROR")
        log.set_level("bogus")
        self.assertEqual(log.level_name, "ERROR")
