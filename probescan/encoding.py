"""JSON accumulation inside an OpenSBP string variable.

OpenSBP string literals have no way to contain a double quote, so the emitted
program writes the named character reference ``&quot;`` wherever JSON needs a
quote. The program builds one array by concatenation::

    &SCANDATA = "["
    &SCANDATA = &SCANDATA + "{&quot;x&quot;:" + %(1)
    &SCANDATA = &SCANDATA + ",&quot;y&quot;:" + %(2)
    ...
    &SCANDATA = &SCANDATA + "]"

Numbers are appended unquoted and rely on the engine's number to string
coercion. The text is valid JSON only once the placeholders are swapped back.
"""
from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Sequence, Tuple

from .dialect import OpenSBP
from .errors import MalformedAccumulatorError

PLACEHOLDER = "&quot;"
NUMERIC_PLACEHOLDER = "&#34;"

Field = Tuple[str, Any]  # (json key, dialect expression)


def quoted(key: str) -> str:
    return f"{PLACEHOLDER}{key}{PLACEHOLDER}"


class InlineJsonEncoder:
    """Emit the statements that build a JSON array in one program variable."""

    def __init__(self, variable: str, dialect: OpenSBP) -> None:
        self.dialect = dialect
        self.variable = variable.upper()

    def _append(self, *parts: Any) -> str:
        d = self.dialect
        return d.assign(self.variable, d.concat(d.var(self.variable), *parts))

    def array_start(self) -> List[str]:
        return [self.dialect.assign(self.variable, self.dialect.string("["))]

    def array_end(self) -> List[str]:
        return [self._append(self.dialect.string("]"))]

    def object_start(self) -> List[str]:
        return [self.dialect.assign(self.variable, self.dialect.string("{"))]

    def object_end(self) -> List[str]:
        return [self._append(self.dialect.string("}"))]

    def append_fields(self, fields: Sequence[Field], *, lead: str = "") -> List[str]:
        """One statement per field, ``lead`` is prepended to the first key."""

        lines: List[str] = []
        for n, (key, value) in enumerate(fields):
            prefix = lead if n == 0 else ","
            lines.append(self._append(self.dialect.string(f"{prefix}{quoted(key)}:"), value))
        return lines

    def append_object(self, fields: Sequence[Field], *, first: bool) -> List[str]:
        """Append ``{key:value,...}`` to the array, with a comma unless ``first``."""

        if not fields:
            raise ValueError("an accumulated object needs at least one field")
        lines = self.append_fields(fields, lead="{" if first else ",{")
        lines.extend(self.object_end())
        return lines


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def placeholder_to_quotes(text: str) -> str:
    return text.replace(PLACEHOLDER, '"').replace(NUMERIC_PLACEHOLDER, '"')


def _reject_constant(name: str) -> float:
    raise ValueError(f"non-finite number {name}")


def _check_finite(obj: Dict[str, Any]) -> None:
    for key, value in obj.items():
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"non-finite value for {key!r}")


def decode_value(text: Any) -> Any:
    """Substitute placeholders and parse; raise on anything that is not JSON."""

    if not isinstance(text, str):
        raise MalformedAccumulatorError(repr(text), f"expected text, got {type(text).__name__}")
    clean = placeholder_to_quotes(text)
    try:
        return json.loads(clean, parse_constant=_reject_constant)
    except ValueError as exc:
        raise MalformedAccumulatorError(text, f"invalid JSON: {exc}") from exc


def decode_array(text: Any) -> List[Dict[str, Any]]:
    data = decode_value(text)
    if not isinstance(data, list):
        raise MalformedAccumulatorError(text, "accumulator is not a JSON array")
    for item in data:
        if not isinstance(item, dict):
            raise MalformedAccumulatorError(text, "array entries must be JSON objects")
        try:
            _check_finite(item)
        except ValueError as exc:
            raise MalformedAccumulatorError(text, str(exc)) from exc
    return data


def encode_array(objects: Sequence[Dict[str, Any]]) -> str:
    """Text the accumulator holds after a complete run over ``objects``."""

    body = ",".join(
        "{" + ",".join(f"{quoted(k)}:{json.dumps(v)}" for k, v in obj.items()) + "}"
        for obj in objects
    )
    return "[" + body + "]"


__all__ = [
    "InlineJsonEncoder",
    "NUMERIC_PLACEHOLDER",
    "PLACEHOLDER",
    "decode_array",
    "decode_value",
    "encode_array",
    "placeholder_to_quotes",
]
