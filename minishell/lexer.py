"""Splitting an expanded pipeline segment into arguments, redirections and heredocs."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable

from minishell.environment import Environment
from minishell.expand import expand_dollar
from minishell.syntax import ignore_space, is_metachar, is_quote, is_space


class RedirectionType(IntEnum):
    """Kind of a redirection operator."""

    INPUT = 1
    OUTPUT = 2
    APPEND = 3
    HEREDOC = 4


@dataclass(frozen=True)
class Redirection:
    """A redirection operator together with the word that follows it."""

    type: RedirectionType
    target: str


@dataclass
class Command:
    """One simple command of a pipeline."""

    args: list[str] = field(default_factory=list)
    redirections: list[Redirection] = field(default_factory=list)
    limiters: list[str] = field(default_factory=list)
    path: str | None = None


def _at(line: str, index: int) -> str:
    return line[index] if 0 <= index < len(line) else ""


def _is_word_char(c: str) -> bool:
    return bool(c) and not is_quote(c) and not is_metachar(c) and not is_space(c)


def _closing(line: str, index: int) -> int:
    """Index of the character matching the quote at ``index``, or the line end."""
    sign = line[index]
    index += 1
    while index < len(line) and line[index] != sign:
        index += 1
    return index


def _skip_plain(line: str, index: int) -> int:
    while _is_word_char(_at(line, index)):
        index += 1
    return index


def _skip_redirection(line: str, index: int) -> int:
    """Skip a redirection operator and the word after it."""
    index += 1
    if is_metachar(_at(line, index)):
        index += 1
    index = ignore_space(line, index)
    while True:
        if is_quote(_at(line, index)):
            index = _closing(line, index)
        if _is_word_char(_at(line, index)):
            index = _skip_plain(line, index)
        if not is_quote(_at(line, index)):
            return index


def _skip_quoted_word(line: str, index: int) -> int:
    while True:
        if is_quote(_at(line, index)):
            index = _closing(line, index)
        if _is_word_char(_at(line, index)):
            index = _skip_plain(line, index)
        else:
            return index


def _skip_heredoc(line: str, index: int) -> int:
    if line[index:index + 2] == "<<":
        index = ignore_space(line, index + 2)
        if is_quote(_at(line, index)):
            index = _closing(line, index)
        else:
            index = _skip_plain(line, index)
    return index


def _read_word(line: str, index: int) -> tuple[str, int]:
    """Read one word starting at ``index``, dropping the quotes inside it."""
    index = ignore_space(line, index)
    chars: list[str] = []
    while True:
        if is_quote(_at(line, index)):
            sign = line[index]
            index += 1
            while index < len(line) and line[index] != sign:
                chars.append(line[index])
                index += 1
            index += 1
        while _is_word_char(_at(line, index)):
            chars.append(line[index])
            index += 1
        if not is_quote(_at(line, index)):
            return "".join(chars), index


def _redirection_type(line: str, index: int) -> RedirectionType:
    pair = line[index:index + 2]
    if pair == ">>":
        return RedirectionType.APPEND
    if pair == "<<":
        return RedirectionType.HEREDOC
    if _at(line, index) == "<":
        return RedirectionType.INPUT
    return RedirectionType.OUTPUT


def count_redirections(line: str) -> int:
    """Count '<', '>' and '>>' operators outside quotes; heredocs are not counted."""
    count = 0
    i = 0
    n = len(line)
    while i < n:
        if is_quote(line[i]):
            i = _closing(line, i)
        if line[i:i + 2] == "<<":
            i += 2
        if line[i:i + 2] == ">>":
            count += 1
            i += 2
        c, nxt = _at(line, i), _at(line, i + 1)
        if (c == ">" and nxt != ">") or (c == "<" and nxt != "<"):
            count += 1
        if i < n:
            i += 1
    return count


def count_heredocs(line: str) -> int:
    """Count '<<' operators outside quotes."""
    count = 0
    i = 0
    n = len(line)
    while i < n:
        if is_quote(line[i]):
            i = _closing(line, i)
        if line[i:i + 2] == "<<":
            count += 1
        if i < n:
            i += 1
    return count


def count_args(line: str) -> int:
    """Estimate the number of words that are not redirection targets.

    The count may exceed the number of words for words holding quotes;
    it is used to tell whether the segment has arguments at all.
    """
    count = 0
    i = 0
    n = len(line)
    while i < n:
        i = ignore_space(line, i)
        if is_metachar(_at(line, i)):
            i = _skip_redirection(line, i)
        i = ignore_space(line, i)
        c = _at(line, i)
        if c and not is_metachar(c):
            if is_quote(c):
                i = _skip_quoted_word(line, i)
                count += 1
            else:
                i = _skip_plain(line, i)
                if not is_quote(_at(line, i)):
                    count += 1
    return count


def parse_args(line: str) -> list[str]:
    """Return the command words of ``line``, quotes removed, redirections left out."""
    args: list[str] = []
    i = 0
    n = len(line)
    while i < n:
        i = ignore_space(line, i)
        if is_metachar(_at(line, i)):
            i = _skip_redirection(line, i)
        i = ignore_space(line, i)
        c = _at(line, i)
        if c and not is_metachar(c):
            word, i = _read_word(line, i)
            args.append(word)
    return args


def parse_redirections(line: str) -> list[Redirection]:
    """Return the redirections of ``line`` in order, heredocs left out."""
    redirections: list[Redirection] = []
    i = 0
    n = len(line)
    while i < n:
        if line[i:i + 2] == "<<":
            i = _skip_heredoc(line, i)
        c = _at(line, i)
        if is_metachar(c):
            kind = _redirection_type(line, i)
            i += 1
            if _at(line, i) == ">":
                i += 1
            target, i = _read_word(line, i)
            redirections.append(Redirection(kind, target))
        elif c:
            i += 1
    return redirections


def parse_heredocs(line: str) -> list[str]:
    """Return the limiter word of every '<<' in ``line``."""
    limiters: list[str] = []
    i = 0
    n = len(line)
    while i < n:
        if line[i:i + 2] == "<<":
            limiter, i = _read_word(line, i + 2)
            limiters.append(limiter)
        else:
            i += 1
    return limiters


def _search_path(env: Environment) -> str | None:
    for entry in env.entries():
        if entry.startswith("PATH="):
            return entry[len("PATH="):]
    return None


def find_path(cmd: str, env: Environment) -> str | None:
    """Resolve ``cmd`` against PATH.

    Without PATH the command is returned as given. Otherwise the first
    executable ``dir/cmd`` wins, then ``cmd`` itself if it exists; else None.
    """
    search = _search_path(env)
    if search is None:
        return cmd
    for directory in filter(None, search.split(":")):
        candidate = f"{directory}/{cmd}"
        if os.access(candidate, os.X_OK):
            return candidate
    if os.access(cmd, os.F_OK):
        return cmd
    return None


def parse_command(line: str, env: Environment) -> Command | None:
    """Build a Command from an expanded segment; None when it holds nothing."""
    n_redirections = count_redirections(line)
    n_heredocs = count_heredocs(line)
    n_args = count_args(line)
    if not (n_redirections or n_heredocs or n_args):
        return None
    command = Command()
    if n_args:
        command.args = parse_args(line)
        if command.args:
            command.path = find_path(command.args[0], env)
    if n_redirections:
        command.redirections = parse_redirections(line)
    if n_heredocs:
        command.limiters = parse_heredocs(line)
    return command


def parse_pipeline(
    segments: Iterable[str], env: Environment, exit_code: int
) -> list[Command]:
    """Expand and parse every segment.

    If any segment holds nothing the whole pipeline is dropped and an empty
    list is returned.
    """
    commands: list[Command] = []
    for segment in segments:
        command = parse_command(expand_dollar(segment, env, exit_code), env)
        if command is None:
            return []
        commands.append(command)
    return commands