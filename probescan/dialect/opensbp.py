"""OpenSBP statement vocabulary as accepted by the FabMo engine.

Only the handful of commands the probing programs need are covered. Every
method returns a single statement line; callers join lines with ``\\n``.
Variable names are always written upper case since the engine upper-cases
them anyway.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

Number = Union[int, float]
Expr = Union[str, Number]

# System variables holding the current location of each axis.
REGISTERS = {"X": 1, "Y": 2, "Z": 3, "A": 4, "B": 5}

_LOCATION_AXES = ("X", "Y", "Z", "A", "B")


@dataclass
class OpenSBP:
    precision: int = 4

    # -------- Literals / expressions --------
    def num(self, value: Number) -> str:
        return f"{float(value):.{self.precision}f}"

    def expr(self, value: Expr) -> str:
        if isinstance(value, bool):
            return str(int(value))
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return self.num(value)
        return value

    @staticmethod
    def var(name: str) -> str:
        return "&" + name.lstrip("&").upper()

    @staticmethod
    def string(text: str) -> str:
        if '"' in text:
            raise ValueError(f"OpenSBP string literals cannot contain a double quote: {text!r}")
        return f'"{text}"'

    def coord(self, value: Expr) -> str:
        """Positions are always written at fixed precision, expressions as is."""

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return self.num(value)
        return value

    def concat(self, *parts: Expr) -> str:
        return " + ".join(self.expr(p) for p in parts)

    @staticmethod
    def register(axis: str) -> str:
        return f"%({REGISTERS[axis.upper()]})"

    # -------- Variables --------
    def assign(self, name: str, value: Expr) -> str:
        return f"{self.var(name)} = {self.expr(value)}"

    def to_number(self, name: str) -> str:
        ref = self.var(name)
        return f"{ref} = {ref}/1"

    # -------- Comments --------
    @staticmethod
    def comment(text: str) -> str:
        return "'" + text

    # -------- Motion / probing --------
    def move_xy(self, x: Expr, y: Expr) -> str:
        return f"M2,{self.coord(x)},{self.coord(y)}"

    def move_z(self, z: Expr) -> str:
        return f"MZ, {self.coord(z)}"

    def rotate(self, axis: str, angle: Expr) -> str:
        return f"M{axis.upper()},{self.coord(angle)}"

    def set_speed(self, speed: Number) -> str:
        s = self.num(speed)
        return f"VS,{s},{s}"

    def probe_z(self, depth: Number, speed: Number, input_number: int) -> str:
        return f"PZ,{self.num(depth)},{self.num(speed)},{int(input_number)}"

    @staticmethod
    def zero_z() -> str:
        return "ZZ"

    def set_location(self, axis: str, value: Expr) -> str:
        """Overwrite the reported location of one axis without moving it."""

        slot = _LOCATION_AXES.index(axis.upper())
        fields = [""] * (slot + 1)
        fields[slot] = self.coord(value)
        return "VA," + ",".join(fields)

    # -------- Operator interaction --------
    def pause(self, message: Expr) -> str:
        return f"PAUSE {self.expr(message)}"

    def prompt(self, message: str) -> str:
        return f"SK {self.string(message)}"

    def dialog_input(self, message: str, name: str, ok_text: Optional[str] = "Continue") -> str:
        line = f"DIALOG {self.string(message)}, INPUT={self.string(self.var(name))}"
        if ok_text:
            line += f", OKTEXT={self.string(ok_text)}"
        return line


__all__ = ["OpenSBP", "REGISTERS"]
