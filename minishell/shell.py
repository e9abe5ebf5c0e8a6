"""The interactive loop: read a line, check it, parse it and run it."""

from __future__ import annotations

import os
import sys
from typing import Callable, Iterable, Mapping, Optional, TextIO, Union

from minishell.builtins import ShellExit
from minishell.environment import Environment, ShellState
from minishell.executor import collect_heredocs, run_pipeline
from minishell.lexer import parse_pipeline
from minishell.syntax import ShellSyntaxError, validate

try:
    import readline as _readline
except ImportError:  # not available on every platform
    _readline = None

PROMPT = "Minishell$ "

ReadLine = Callable[[str], Optional[str]]
Environ = Union[Mapping[str, str], Iterable[str]]


def _console_read_line(prompt: str) -> str | None:
    """Read one line from the terminal; None at end of input."""
    try:
        return input(prompt)
    except EOFError:
        return None


def _entries(environ: Environ) -> list[str]:
    if isinstance(environ, Mapping):
        return [f"{name}={value}" for name, value in environ.items()]
    return list(environ)


class Shell:
    """A small interactive shell with its own variables and last status."""

    def __init__(
        self,
        environ: Environ | None = None,
        read_line: ReadLine | None = None,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ) -> None:
        source = os.environ if environ is None else environ
        self.state = ShellState(Environment(_entries(source)))
        self.read_line: ReadLine = (
            _console_read_line if read_line is None else read_line
        )
        self.out: TextIO = sys.stdout if out is None else out
        self.err: TextIO = sys.stderr if err is None else err
        self.history: list[str] = []

    @property
    def exit_code(self) -> int:
        """Status of the last command."""
        return self.state.exit_code

    def _remember(self, line: str) -> None:
        self.history.append(line)
        if _readline is not None and self.read_line is _console_read_line:
            _readline.add_history(line)

    def execute(self, line: str) -> int:
        """Run one command line and return the shell status.

        Syntax errors are reported on the error stream and give status 258.
        An interrupt while heredocs are read cancels the line. The ``exit``
        builtin raises ShellExit.
        """
        try:
            segments = validate(line)
        except ShellSyntaxError as problem:
            self.err.write(f"{problem}\n")
            self.state.exit_code = problem.exit_code
            return self.state.exit_code
        if not segments:
            return self.state.exit_code
        commands = parse_pipeline(segments, self.state.env, self.state.exit_code)
        if not commands:
            return self.state.exit_code
        try:
            heredocs = collect_heredocs(commands, self.read_line)
        except KeyboardInterrupt:
            self.out.write("\n")
            return self.state.exit_code
        return run_pipeline(commands, self.state, heredocs, self.out, self.err)

    def run(self) -> int:
        """Read and run lines until end of input or ``exit``; return the status."""
        while True:
            try:
                line = self.read_line(PROMPT)
            except KeyboardInterrupt:
                self.out.write("\n")
                self.state.exit_code = 1
                continue
            except EOFError:
                line = None
            if line is None:
                self.out.write("exit\n")
                return self.state.exit_code
            if line:
                self._remember(line)
            try:
                self.execute(line)
            except ShellExit as request:
                return request.status


def main(argv: list[str] | None = None) -> int:
    """Start the shell; any command-line argument makes it return 0 at once."""
    if argv is None:
        argv = sys.argv[1:]
    if argv:
        return 0
    return Shell().run()


if __name__ == "__main__":
    raise SystemExit(main())