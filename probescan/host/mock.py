"""In-memory FabMo stand-in used for development and unit tests.

:class:`MockHost` mimics the :class:`~probescan.host.fabmo.FabMoClient` API and
interprets the subset of OpenSBP that the probing programs use, so a generated
program can be run end to end without a machine. Probe contacts come from a
``surface`` callable giving the machine-frame Z of the material at (x, y, a, b).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from ..dialect import REGISTERS
from ..errors import HostError

Value = Union[str, float]
SurfaceFn = Callable[[float, float, float, float], float]

_ASSIGN = re.compile(r"^&(\w+)\s*=\s*(.*)$")
_REGISTER = re.compile(r"^%\((\d+)\)$")
_INPUT = re.compile(r'INPUT\s*=\s*"&(\w+)"', re.IGNORECASE)
_AXES = ("X", "Y", "Z", "A", "B")


def flat(x: float, y: float, a: float, b: float) -> float:
    return 0.0


def _split_outside_quotes(text: str, sep: str) -> List[str]:
    parts: List[str] = []
    buf: List[str] = []
    quoted = False
    for ch in text:
        if ch == '"':
            quoted = not quoted
        if ch == sep and not quoted:
            parts.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
    parts.append("".join(buf).strip())
    return parts


def _to_text(value: Value) -> str:
    if isinstance(value, str):
        return value
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


@dataclass
class MockHost:
    """Small simulation of the engine's program runner and variable store."""

    surface: SurfaceFn = flat
    answers: Dict[str, float] = field(default_factory=dict)
    auto_run: bool = True
    reject_with: Optional[str] = None

    def __post_init__(self) -> None:
        self.variables: Dict[str, Value] = {}
        self.programs: List[str] = []
        self.messages: List[str] = []
        self.machine: Dict[str, float] = {axis: 0.0 for axis in _AXES}
        self.offset: Dict[str, float] = {axis: 0.0 for axis in _AXES}
        self.probe_count = 0
        self.has_store = True

    # Host API -----------------------------------------------------------
    def submit_program(self, text: str) -> None:
        if self.reject_with:
            raise HostError(self.reject_with)
        self.programs.append(text)
        if self.auto_run:
            self.run(text)

    def get_config(self) -> Dict[str, Any]:
        if not self.has_store:
            return {"engine": {}}
        return {"opensbp": {"tempVariables": dict(self.variables)}}

    def close(self) -> None:
        pass

    # Positions ----------------------------------------------------------
    def location(self, axis: str) -> float:
        return self.machine[axis] - self.offset[axis]

    def _move(self, axis: str, value: float) -> None:
        self.machine[axis] = value + self.offset[axis]

    def _set_location(self, axis: str, value: float) -> None:
        self.offset[axis] = self.machine[axis] - value

    # Interpreter --------------------------------------------------------
    def run(self, text: str, *, stop_after: Optional[int] = None) -> None:
        """Execute ``text``; ``stop_after`` abandons the run after that many lines."""

        for n, raw in enumerate(text.splitlines()):
            if stop_after is not None and n >= stop_after:
                return
            self.execute(raw)

    def execute(self, raw: str) -> None:
        line = raw.strip()
        if not line or line.startswith("'"):
            return
        m = _ASSIGN.match(line)
        if m:
            self.variables[m.group(1).upper()] = self.evaluate(m.group(2))
            return
        head, _, rest = line.partition(" ")
        cmd, _, args = head.partition(",")
        cmd = cmd.upper()
        if cmd in ("SK", "PAUSE"):
            self.messages.append(_to_text(self.evaluate(rest)) if rest else "")
            return
        if cmd == "DIALOG":
            target = _INPUT.search(rest)
            if not target:
                raise ValueError(f"DIALOG without INPUT variable: {raw!r}")
            name = target.group(1).upper()
            self.variables[name] = _to_text(self.answers.get(name, 0.0))
            return
        fields = _split_outside_quotes(args + rest, ",") if (args or rest) else []
        self._command(cmd, fields, raw)

    def _command(self, cmd: str, fields: List[str], raw: str) -> None:
        if cmd == "M2":
            for axis, value in zip(("X", "Y"), fields):
                if value:
                    self._move(axis, self._number(value))
        elif cmd in ("MZ", "MA", "MB"):
            self._move(cmd[1], self._number(fields[0]))
        elif cmd == "PZ":
            depth = self._number(fields[0])
            x, y, a, b = (self.location(axis) for axis in ("X", "Y", "A", "B"))
            contact = self.surface(x, y, a, b)
            floor = depth + self.offset["Z"]
            self.machine["Z"] = max(contact, floor)
            self.probe_count += 1
        elif cmd == "ZZ":
            self._set_location("Z", 0.0)
        elif cmd == "VA":
            for axis, value in zip(_AXES, fields):
                if value:
                    self._set_location(axis, self._number(value))
        elif cmd == "VS":
            pass
        else:
            raise ValueError(f"Unsupported statement: {raw!r}")

    # Expressions --------------------------------------------------------
    def _number(self, expr: str) -> float:
        value = self.evaluate(expr)
        return float(value)

    def _term(self, term: str) -> Value:
        if term.startswith('"') and term.endswith('"') and len(term) >= 2:
            return term[1:-1]
        pieces = _split_outside_quotes(term, "/")
        if len(pieces) > 1:
            result = float(self._term(pieces[0]))
            for piece in pieces[1:]:
                result /= float(self._term(piece))
            return result
        reg = _REGISTER.match(term)
        if reg:
            slot = int(reg.group(1))
            axis = next(name for name, index in REGISTERS.items() if index == slot)
            return self.location(axis)
        if term.startswith("&"):
            name = term[1:].upper()
            if name not in self.variables:
                raise ValueError(f"Variable &{name} used before assignment")
            return self.variables[name]
        return float(term)

    def evaluate(self, expr: str) -> Value:
        terms = _split_outside_quotes(expr.strip(), "+")
        result: Value = self._term(terms[0])
        for term in terms[1:]:
            value = self._term(term)
            if isinstance(result, str) or isinstance(value, str):
                result = _to_text(result) + _to_text(value)
            else:
                result = result + value
        return result


__all__ = ["MockHost", "flat"]
