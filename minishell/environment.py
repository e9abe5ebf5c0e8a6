"""The shell's variable table and the state shared by its commands."""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from typing import Iterable

_IDENTIFIER_START = frozenset(string.ascii_letters + "_")


def is_identifier_start(c: str) -> bool:
    """Return True if ``c`` may open a variable name: an ASCII letter or '_'."""
    return c in _IDENTIFIER_START


def _name(entry: str) -> str:
    """Name part of an entry; an entry with no '=' (or one at the start) is all name."""
    eq = entry.find("=")
    return entry if eq <= 0 else entry[:eq]


class Environment:
    """Ordered list of ``NAME=value`` entries, some possibly without a value."""

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self._entries = list(entries)

    def entries(self) -> list[str]:
        """Return a copy of every entry, in order."""
        return list(self._entries)

    def find_entry(self, key: str) -> str | None:
        """Return the entry whose name is ``key``.

        The search stops at the first entry whose name is a prefix of ``key``:
        if that name is shorter than ``key`` nothing is found.
        """
        for entry in self._entries:
            name = _name(entry)
            if name and key.startswith(name):
                return entry if len(name) == len(key) else None
        return None

    def lookup(self, key: str) -> str | None:
        """Return the value of ``key``, or None when it is not set."""
        entry = self.find_entry(key)
        if entry is None:
            return None
        return entry.partition("=")[2]

    def export(self, entry: str) -> None:
        """Replace the entry with the same name, or append ``entry`` at the end."""
        name = _name(entry)
        for index, existing in enumerate(self._entries):
            if _name(existing) == name:
                self._entries[index] = entry
                return
        self._entries.append(entry)

    def unset(self, name: str) -> None:
        """Remove every entry called ``name`` (or equal to ``name`` as a whole)."""
        self._entries = [
            entry
            for entry in self._entries
            if entry.partition("=")[0] != name and entry != name
        ]

    def visible(self) -> list[str]:
        """Entries that carry a value, as printed by ``env``."""
        return [entry for entry in self._entries if entry.find("=") > 0]

    def sorted_entries(self) -> list[str]:
        """Sort the table in place and return the sorted entries."""
        self._entries.sort()
        return list(self._entries)

    def as_dict(self) -> dict[str, str]:
        """Entries with a value as a mapping, suitable for child processes."""
        result: dict[str, str] = {}
        for entry in self.visible():
            name, _, value = entry.partition("=")
            result[name] = value
        return result


@dataclass
class ShellState:
    """What survives from one command to the next: variables and last status."""

    env: Environment = field(default_factory=Environment)
    exit_code: int = 0