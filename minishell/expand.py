"""Expansion of ``$NAME`` and ``$?`` on a command-line segment."""

from __future__ import annotations

import string

from minishell.environment import Environment
from minishell.syntax import ignore_space, is_metachar, is_quote

_NAME_CHARS = frozenset(string.ascii_letters + "_")
_DIGITS = frozenset(string.digits)


class _Expander:
    def __init__(self, line: str, env: Environment, exit_code: int) -> None:
        self.line = line
        self.env = env
        self.exit_code = exit_code
        self.i = 0
        self.out: list[str] = []

    def at(self, offset: int = 0) -> str:
        index = self.i + offset
        return self.line[index] if 0 <= index < len(self.line) else ""

    def take(self, char: str | None = None) -> None:
        self.out.append(self.at() if char is None else char)
        self.i += 1

    def exit_status(self) -> None:
        self.i += 2
        self.out.append(str(self.exit_code))

    def append_value(self, name: str) -> None:
        value = self.env.lookup(name)
        if value is not None:
            self.out.append(value)

    def run(self) -> str:
        while self.at():
            c, nxt = self.at(), self.at(1)
            if c == '"':
                self.double_quoted()
            elif c == "$" and nxt in _NAME_CHARS:
                self.variable()
            elif c == "'":
                self.single_quoted()
            elif c == "<" and nxt == "<":
                self.heredoc()
            else:
                self.plain()
        return "".join(self.out)

    def plain(self) -> None:
        if self.at() == "$" and self.at(1) in (" ", ""):
            self.take("$")
        if self.at() == "$" and self.at(1) == "?":
            self.exit_status()
        if self.at() == "$":
            if self.at(1) != "?":
                self.i += 1
            if self.at() in _DIGITS:
                self.i += 1
        elif self.at():
            self.take()

    def variable(self) -> None:
        if self.at() == "$" and self.at(1) == "$":
            self.i += 1
        self.i += 1
        start = self.i
        while self.at() in _NAME_CHARS:
            self.i += 1
        self.append_value(self.line[start:self.i])

    def single_quoted(self) -> None:
        self.take()
        while self.i < len(self.line) and self.line[self.i] != "'":
            self.take()
        self.take("'")

    def heredoc(self) -> None:
        self.take("<")
        self.take("<")
        while True:
            if self.at() == " ":
                self.take()
                self.i = ignore_space(self.line, self.i)
            if is_quote(self.at()):
                self.heredoc_quoted()
            elif self.at():
                self.take()
                while (
                    self.at()
                    and not is_quote(self.at())
                    and not is_metachar(self.at())
                    and self.at() != " "
                ):
                    self.take()
            if not is_quote(self.at()):
                break

    def heredoc_quoted(self) -> None:
        quote = self.at()
        self.i += 1
        while self.at() and self.at() != quote:
            self.take()
        self.i += 1

    def double_quoted_step(self) -> None:
        if self.at() == '"':
            self.take()
        if self.at() == "$" and self.at(1) in (" ", "", '"'):
            self.take("$")
        if self.at() == "$" and self.at(1) == "?":
            self.exit_status()
        if self.at() == "$" and self.at(1) in _NAME_CHARS:
            self.i += 1
            start = self.i
            while (
                self.at()
                and not is_quote(self.at())
                and self.at() != "$"
                and self.at() != " "
            ):
                self.i += 1
            self.append_value(self.line[start:self.i])

    def double_quoted(self) -> None:
        while True:
            self.double_quoted_step()
            if self.at() not in ('"', "$"):
                self.take()
            if self.at() == "$" and self.at(1) not in _NAME_CHARS:
                if self.at(1) in _DIGITS:
                    self.i += 1
                if self.at() == "$" and self.at(1) != "?":
                    self.i += 1
            if not self.at() or self.at() == '"':
                break
        if self.at() == '"':
            self.take()


def expand_dollar(line: str, env: Environment, exit_code: int) -> str:
    """Expand variables and ``$?`` in ``line``.

    Text in single quotes and heredoc limiters is left alone; quotes around a
    heredoc limiter are removed. Double quotes are kept in the result.
    """
    return _Expander(line, env, exit_code).run()