from __future__ import annotations
import sys, datetime as _dt, json
from typing import Any, Dict, Optional, TextIO


_LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}


class ConsoleLogger:
    """Structured logger writing one line per record to a stream (stderr).

    Args:
        name: Logger name printed with every record
        level: Minimum level emitted (DEBUG, INFO, WARN or ERROR)
        json_output: Emit JSON objects instead of text lines
        context: Fields attached to every record
        stream: Where records go; stderr when omitted
    """
    def __init__(self, name: str = "genpipe", level: str = "INFO", json_output: bool = False,
                 context: Optional[Dict[str, Any]] = None, stream: Optional[TextIO] = None):
        self.name = name
        self.level = _LEVELS.get(level.upper(), 20)
        self.json_output = json_output
        self.context = dict(context or {})
        self.stream = stream

    def set_level(self, level: str) -> None:
        self.level = _LEVELS.get(level.upper(), self.level)

    def bind(self, **fields: Any) -> "ConsoleLogger":
        ctx = dict(self.context); ctx.update(fields)
        return ConsoleLogger(self.name, level=self.level_name, json_output=self.json_output, context=ctx, stream=self.stream)

    @property
    def level_name(self) -> str:
        for k, v in _LEVELS.items():
            if v == self.level: return k
        return "INFO"

    def enabled(self, level: str) -> bool:
        return _LEVELS[level] >= self.level

    async def _log(self, level: str, msg: str, **fields: Any) -> None:
        if not self.enabled(level):
            return
        out = self.stream or sys.stderr
        ts = _dt.datetime.now(_dt.timezone.utc).isoformat()
        all_fields: Dict[str, Any] = {}
        all_fields.update(self.context)
        all_fields.update(fields)
        if self.json_output:
            data: Dict[str, Any] = {"ts": ts, "name": self.name, "level": level, "msg": msg}
            if all_fields:
                data["fields"] = all_fields
            print(json.dumps(data, separators=(",", ":"), default=repr), file=out)
        else:
            extras = "".join([f" {k}={v}" for k, v in sorted(all_fields.items())]) if all_fields else ""
            print(f"[{ts}] {self.name} {level}: {msg}{extras}", file=out)

    async def debug(self, msg: str, **fields: Any) -> None: await self._log("DEBUG", msg, **fields)
    async def info(self, msg: str, **fields: Any) -> None: await self._log("INFO", msg, **fields)
    async def warn(self, msg: str, **fields: Any) -> None: await self._log("WARN", msg, **fields)
    async def error(self, msg: str, **fields: Any) -> None: await self._log("ERROR", msg, **fields)
