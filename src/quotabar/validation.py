"""Schema checks for untrusted JSON (credential files, API bodies, log lines)."""

from __future__ import annotations

from typing import Any

import msgspec


class Decoded(msgspec.Struct, frozen=True):
    """Tagged result of validating untrusted input against a schema."""

    success: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, value: Any) -> Decoded:
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str) -> Decoded:
        return cls(success=False, error=error)


def decode_as(raw: Any, type: Any) -> Decoded:
    """Validate already-decoded builtins against ``type``.

    Unknown fields are ignored; missing required fields or wrong types yield
    a failed result instead of an exception.
    """
    try:
        return Decoded.ok(msgspec.convert(raw, type=type))
    except msgspec.ValidationError as e:
        return Decoded.fail(str(e))


def decode_json_as(data: bytes | str, type: Any = Any) -> Decoded:
    """Decode JSON bytes and validate them against ``type``."""
    try:
        return Decoded.ok(msgspec.json.decode(data, type=type))
    except (msgspec.DecodeError, UnicodeDecodeError, RecursionError) as e:
        return Decoded.fail(str(e))
