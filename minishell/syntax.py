"""Syntax checks run on a raw command line before it is split into commands."""

from __future__ import annotations

_SPACES = frozenset(" \t\n\r\v\f")
_METACHARS = frozenset("<>")
_QUOTES = frozenset("\"'")

_MESSAGE = "Minishell: syntax error near unexpected token"


class ShellSyntaxError(Exception):
    """A command line the shell refuses to run; the shell status becomes 258."""

    exit_code = 258

    def __init__(self, token: str | None = None) -> None:
        self.token = token
        message = _MESSAGE if token is None else f"{_MESSAGE} {token}"
        super().__init__(message)


def is_space(c: str) -> bool:
    """Return True for the whitespace characters the shell skips."""
    return c in _SPACES


def is_metachar(c: str) -> bool:
    """Return True for the redirection characters '<' and '>'."""
    return c in _METACHARS


def is_quote(c: str) -> bool:
    """Return True for a single or a double quote."""
    return c in _QUOTES


def _at(line: str, index: int) -> str:
    """Character at ``index``, or an empty string past either end."""
    return line[index] if 0 <= index < len(line) else ""


def ignore_space(line: str, index: int) -> int:
    """Return the first index at or after ``index`` that is not whitespace."""
    while index < len(line) and is_space(line[index]):
        index += 1
    return index


def strip_spaces(text: str) -> str:
    """Remove every plain space (and only spaces) from ``text``."""
    return "".join(c for c in text if c != " ")


def _closing_quote(line: str, index: int) -> int:
    """Index of the quote closing the one at ``index``, or the line length."""
    close = line.find(line[index], index + 1)
    return len(line) if close == -1 else close


def check_quotes(line: str) -> bool:
    """Raise ShellSyntaxError if a quote in ``line`` is left open."""
    double = single = 0
    lock = 0  # 1 inside single quotes, 2 inside double quotes
    for c in line:
        if c == '"' and lock != 1:
            lock = 2
            double += 1
            if double == 2:
                lock = double = 0
        if c == "'" and lock != 2:
            lock = 1
            single += 1
            if single == 2:
                lock = single = 0
    if double % 2 or single % 2:
        raise ShellSyntaxError()
    return True


def check_edges(line: str) -> bool:
    """Check the ends of the line.

    Returns False for a line holding nothing but spaces and raises
    ShellSyntaxError when the line starts or ends with a pipe.
    """
    stripped = strip_spaces(line)
    if not stripped:
        return False
    if stripped[0] == "|":
        raise ShellSyntaxError("`|'")
    if stripped[-1] == "|":
        raise ShellSyntaxError("`newline'")
    return True


def check_pipes(line: str) -> bool:
    """Raise ShellSyntaxError for '||' or a pipe followed only by blanks and a pipe."""
    i = 0
    n = len(line)
    while i < n:
        if is_quote(line[i]):
            i = _closing_quote(line, i)
        if _at(line, i) == "|":
            if _at(line, i + 1) == "|":
                raise ShellSyntaxError("`|'")
            i = ignore_space(line, i + 1)
            if _at(line, i) == "|":
                raise ShellSyntaxError("`|'")
        else:
            i += 1
    return True


def _protected_pipes(line: str) -> set[int]:
    """Indices of '|' characters that sit inside quotes."""
    protected: set[int] = set()
    i = 0
    n = len(line)
    while i < n:
        if is_quote(line[i]):
            end = _closing_quote(line, i)
            protected.update(k for k in range(i + 1, end) if line[k] == "|")
            i = end
        i += 1
    return protected


def split_pipeline(line: str) -> list[str]:
    """Split ``line`` on unquoted pipes, dropping empty pieces."""
    protected = _protected_pipes(line)
    segments: list[str] = []
    start = 0
    for i, c in enumerate(line):
        if c == "|" and i not in protected:
            segments.append(line[start:i])
            start = i + 1
    segments.append(line[start:])
    return [segment for segment in segments if segment]


def _check_redirection_at(segment: str, j: int) -> None:
    pair = segment[j:j + 2]
    if pair in ("<<", ">>"):
        k = ignore_space(segment, j + 2)
    elif is_metachar(_at(segment, j)):
        k = ignore_space(segment, j + 1)
    else:
        return
    follower = _at(segment, k)
    if is_metachar(follower):
        raise ShellSyntaxError(follower)


def check_redirections(segments: list[str]) -> bool:
    """Raise ShellSyntaxError for a dangling or doubled-up redirection."""
    last = len(segments) - 1
    for position, segment in enumerate(segments):
        stripped = strip_spaces(segment)
        if stripped and is_metachar(stripped[-1]):
            raise ShellSyntaxError("`newline'" if position == last else "`|'")
    for segment in segments:
        n = len(segment)
        j = 0
        while j < n:
            j = ignore_space(segment, j)
            if is_quote(_at(segment, j)):
                j = _closing_quote(segment, j)
            _check_redirection_at(segment, j)
            if j < n:
                j += 1
    return True


def validate(line: str) -> list[str]:
    """Check ``line`` and return its pipeline segments.

    A blank line gives an empty list; a malformed one raises ShellSyntaxError.
    """
    check_quotes(line)
    if not check_edges(line):
        return []
    check_pipes(line)
    segments = split_pipeline(line)
    check_redirections(segments)
    return segments