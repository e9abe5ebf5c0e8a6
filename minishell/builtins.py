"""Commands the shell runs itself instead of starting a program."""

from __future__ import annotations

import os
from typing import Sequence, TextIO

from minishell.environment import ShellState, is_identifier_start

BUILTINS = frozenset({"pwd", "echo", "cd", "export", "unset", "env", "exit"})

_EXIT_LIMIT = "9223372036854775808"
_LONG_MAX = 2**63 - 1
_ATOI_SPACES = frozenset(" \t\n\v\f\r")


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with ``status`` (0 to 255)."""

    def __init__(self, status: int) -> None:
        self.status = status & 0xFF
        super().__init__(f"exit {self.status}")


def is_builtin(name: str | None) -> bool:
    """Return True if ``name`` is one of the shell's own commands."""
    return name is not None and name in BUILTINS


def _to_c_int(value: int) -> int:
    """Truncate an integer to a signed 32-bit value."""
    value &= 0xFFFFFFFF
    return value - 2**32 if value >= 2**31 else value


def parse_exit_code(text: str) -> int:
    """Read a leading decimal number the way ``exit`` does.

    Leading whitespace and one sign are allowed; reading stops at the first
    non-digit. A magnitude above the largest 64-bit signed value gives 1.
    The result is truncated to a 32-bit signed integer.
    """
    i = 0
    n = len(text)
    while i < n and text[i] in _ATOI_SPACES:
        i += 1
    sign = 1
    if i < n and text[i] in "+-":
        if text[i] == "-":
            sign = -1
        i += 1
    value = 0
    while i < n and "0" <= text[i] <= "9":
        value = (value * 10 + ord(text[i]) - ord("0")) % 2**64
        i += 1
        if value > _LONG_MAX:
            return 1
    return _to_c_int((sign * value) % 2**64)


def _is_n_flag(arg: str) -> bool:
    return len(arg) >= 2 and arg[0] == "-" and set(arg[1:]) == {"n"}


def echo(args: Sequence[str], out: TextIO) -> None:
    """Print the arguments, each followed by a space; ``-n`` drops the newline."""
    if len(args) < 2:
        out.write("\n")
        return
    i = 1
    while i < len(args) and _is_n_flag(args[i]):
        i += 1
    out.write("".join(f"{word} " for word in args[i:]))
    if i == 1:
        out.write("\n")


def cd(args: Sequence[str], state: ShellState, err: TextIO) -> None:
    """Change directory to the argument, or to $HOME without one."""
    target = args[1] if len(args) > 1 else os.environ.get("HOME")
    try:
        if target is None:
            raise FileNotFoundError("HOME not set")
        os.chdir(target)
    except OSError:
        shown = args[1] if len(args) > 1 else ""
        err.write(f"minishell: {shown}: No such file or directory\n")
        state.exit_code = 1


def pwd(state: ShellState, out: TextIO, err: TextIO) -> None:
    """Print the current working directory."""
    try:
        cwd = os.getcwd()
    except OSError:
        err.write("path not valid\n")
        state.exit_code = 1
        return
    out.write(f"{cwd}\n")


def env(state: ShellState, out: TextIO) -> None:
    """Print every variable that carries a value."""
    for entry in state.env.visible():
        out.write(f"{entry}\n")


def export(args: Sequence[str], state: ShellState, out: TextIO, err: TextIO) -> None:
    """Set variables, or list them all sorted when given no argument."""
    if len(args) < 2:
        for entry in state.env.sorted_entries():
            out.write(f"declare -x {entry}\n")
        return
    for arg in args[1:]:
        if not is_identifier_start(arg[:1]):
            err.write(f"minishell: export: `{arg}': not a valid identifier\n")
            state.exit_code = 1
            return
    for arg in args[1:]:
        state.env.export(arg)


def unset(args: Sequence[str], state: ShellState, err: TextIO) -> None:
    """Remove the named variables; nothing is removed if one name is invalid."""
    if len(args) < 2:
        return
    for arg in args[1:]:
        if not is_identifier_start(arg[:1]):
            err.write(f"minishell : `{arg}': not a valid identifier\n")
            state.exit_code = 1
            return
    for arg in args[1:]:
        state.env.unset(arg)


def _numeric_error(arg: str, state: ShellState, out: TextIO) -> None:
    out.write(f"bash: exit: {arg}: Numeric argumrnts required\n")
    state.exit_code = 255


def exit_builtin(args: Sequence[str], state: ShellState, out: TextIO) -> None:
    """Raise ShellExit, unless given too many arguments."""
    for arg in args[1:]:
        if any(c.isascii() and c.isalpha() for c in arg):
            _numeric_error(arg, state, out)
            raise ShellExit(state.exit_code)
    if len(args) > 2:
        out.write("exit\n")
        out.write("bash: exit: too many arguments\n")
        state.exit_code = 1
        return
    if len(args) < 2:
        raise ShellExit(0)
    state.exit_code = parse_exit_code(args[1])
    if args[1] >= _EXIT_LIMIT:
        _numeric_error(args[1], state, out)
    raise ShellExit(state.exit_code)


def run_builtin(
    args: Sequence[str], state: ShellState, out: TextIO, err: TextIO
) -> int:
    """Run the builtin named by ``args[0]`` and return the shell status."""
    name = args[0] if args else None
    if name == "pwd":
        pwd(state, out, err)
    elif name == "echo":
        echo(args, out)
    elif name == "cd":
        cd(args, state, err)
    elif name == "export":
        export(args, state, out, err)
    elif name == "unset":
        unset(args, state, err)
    elif name == "env":
        env(state, out)
    elif name == "exit":
        exit_builtin(args, state, out)
    else:
        raise ValueError(f"not a builtin: {name!r}")
    return state.exit_code