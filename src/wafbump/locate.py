"""Locate dependency declarations inside raw resolve.json text.

The manifest is never re-serialized. Instead the top-level array is walked
object by object and the character span of every key/value pair is recorded,
so a single value can be replaced while every other byte stays as written.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

from ._types import MANIFEST_FILENAME
from .errors import DependencyFileNotParseableError

_WHITESPACE = re.compile(r"[ \t\n\r]*")
_DECODER = json.JSONDecoder()


@dataclass(frozen=True)
class Field:
    """One key/value pair of a declaration, with offsets into the file text."""

    key: str
    value: Any
    start: int
    end: int

    def raw(self, content: str) -> str:
        return content[self.start : self.end]


@dataclass(frozen=True)
class DeclarationMatch:
    """The span of one declaration object and its fields."""

    start: int
    end: int
    fields: dict[str, Field] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        found = self.fields.get(key)
        return found.value if found else None

    @property
    def resolver(self) -> str | None:
        return self.get("resolver")

    @property
    def method(self) -> str | None:
        return self.get("method")


class _Scanner:
    def __init__(self, content: str, file_name: str) -> None:
        self.content = content
        self.file_name = file_name
        self.pos = 0

    def fail(self, detail: str) -> DependencyFileNotParseableError:
        return DependencyFileNotParseableError(self.file_name, f"{detail} at offset {self.pos}")

    def skip_ws(self) -> None:
        self.pos = _WHITESPACE.match(self.content, self.pos).end()  # type: ignore[union-attr]

    def peek(self) -> str:
        return self.content[self.pos : self.pos + 1]

    def expect(self, char: str) -> None:
        self.skip_ws()
        if self.peek() != char:
            raise self.fail(f"expected {char!r}")
        self.pos += 1

    def value(self) -> tuple[Any, int, int]:
        self.skip_ws()
        start = self.pos
        try:
            decoded, self.pos = _DECODER.raw_decode(self.content, self.pos)
        except json.JSONDecodeError as exc:
            raise DependencyFileNotParseableError(self.file_name, str(exc)) from exc
        return decoded, start, self.pos

    def obj(self) -> DeclarationMatch:
        start = self.pos
        self.expect("{")
        fields: dict[str, Field] = {}
        self.skip_ws()
        if self.peek() == "}":
            self.pos += 1
            return DeclarationMatch(start, self.pos, fields)

        while True:
            key, _key_start, _key_end = self.value()
            if not isinstance(key, str):
                raise self.fail("expected a string key")
            self.expect(":")
            decoded, value_start, value_end = self.value()
            fields[key] = Field(key=key, value=decoded, start=value_start, end=value_end)

            self.skip_ws()
            char = self.peek()
            self.pos += 1
            if char == "}":
                return DeclarationMatch(start, self.pos, fields)
            if char != ",":
                self.pos -= 1
                raise self.fail("expected ',' or '}'")

    def declarations(self) -> list[DeclarationMatch]:
        self.skip_ws()
        if self.peek() != "[":
            return []
        self.pos += 1

        found: list[DeclarationMatch] = []
        self.skip_ws()
        if self.peek() == "]":
            return found

        while True:
            self.skip_ws()
            if self.peek() == "{":
                found.append(self.obj())
            else:
                self.value()

            self.skip_ws()
            char = self.peek()
            self.pos += 1
            if char == "]":
                return found
            if char != ",":
                self.pos -= 1
                raise self.fail("expected ',' or ']'")


def declarations(content: str, file_name: str = MANIFEST_FILENAME) -> list[DeclarationMatch]:
    """Return every object declaration in the manifest's top-level array."""

    return _Scanner(content, file_name).declarations()


def locate(content: str, dependency_name: str, file_name: str = MANIFEST_FILENAME) -> DeclarationMatch | None:
    """Find the declaration whose ``name`` field equals `dependency_name`."""

    for match in declarations(content, file_name):
        if match.get("name") == dependency_name:
            return match
    return None


def replace_field_value(content: str, match: DeclarationMatch, key: str, new_raw: str) -> str:
    """Splice `new_raw` over exactly the span of one field's value."""

    target = match.fields[key]
    return content[: target.start] + new_raw + content[target.end :]


__all__ = ["DeclarationMatch", "Field", "declarations", "locate", "replace_field_value"]
