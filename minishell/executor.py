"""Running parsed commands: heredocs, redirections, builtins and child processes."""

from __future__ import annotations

import io
import os
import subprocess
import sys
import threading
from contextlib import ExitStack
from typing import IO, Callable, Iterable, Optional, Sequence, TextIO

from minishell.builtins import ShellExit, is_builtin, run_builtin
from minishell.environment import Environment, ShellState
from minishell.lexer import Command, RedirectionType

ReadLine = Callable[[str], Optional[str]]

HEREDOC_PROMPT = "> "


class RedirectionError(Exception):
    """A redirection file could not be opened; the command status becomes 1."""

    exit_code = 1


def read_heredoc(limiter: str, read_line: ReadLine) -> str:
    """Read lines until one equals ``limiter`` or input ends; return them joined.

    Every kept line is followed by a newline. ``read_line`` is called with the
    prompt and returns None at end of input. An interrupt raised by
    ``read_line`` is passed on unchanged.
    """
    lines: list[str] = []
    while True:
        line = read_line(HEREDOC_PROMPT)
        if line is None or line == limiter:
            break
        lines.append(f"{line}\n")
    return "".join(lines)


def collect_heredocs(
    commands: Iterable[Command], read_line: ReadLine
) -> list[str | None]:
    """Read every heredoc of every command, in order.

    Each command gets the text of its last heredoc, or None if it has none.
    """
    collected: list[str | None] = []
    for command in commands:
        text: str | None = None
        for limiter in command.limiters:
            text = read_heredoc(limiter, read_line)
        collected.append(text)
    return collected


def _missing(target: str) -> str:
    return f"minishell: {target}: No such file or directory\n"


def open_redirections(
    command: Command, state: ShellState
) -> tuple[IO[bytes] | None, IO[bytes] | None]:
    """Open the command's redirection files and return (stdin, stdout).

    Output files are created but not truncated; an append target takes
    precedence over a plain output target. A missing input file stops the
    processing. Any failure sets the status to 1 and raises RedirectionError.
    """
    opened: list[IO[bytes]] = []
    stdin_file: IO[bytes] | None = None
    out_file: IO[bytes] | None = None
    append_file: IO[bytes] | None = None
    problems: list[str] = []
    for redirection in command.redirections:
        kind = redirection.type
        if kind is RedirectionType.HEREDOC:
            break
        try:
            if kind is RedirectionType.INPUT:
                stdin_file = open(redirection.target, "rb")
                opened.append(stdin_file)
            elif kind is RedirectionType.OUTPUT:
                fd = os.open(redirection.target, os.O_CREAT | os.O_RDWR, 0o666)
                out_file = os.fdopen(fd, "r+b")
                opened.append(out_file)
            else:
                fd = os.open(
                    redirection.target,
                    os.O_CREAT | os.O_APPEND | os.O_RDWR,
                    0o644,
                )
                append_file = os.fdopen(fd, "a+b")
                opened.append(append_file)
        except OSError:
            problems.append(_missing(redirection.target))
            if kind is RedirectionType.INPUT:
                break
    stdout_file = append_file if append_file is not None else out_file
    keep = () if problems else (stdin_file, stdout_file)
    for handle in opened:
        if not any(handle is kept for kept in keep):
            handle.close()
    if problems:
        state.exit_code = RedirectionError.exit_code
        raise RedirectionError("".join(problems))
    return stdin_file, stdout_file


def exit_status(returncode: int) -> int:
    """Shell status of a finished child: its exit code, or 128 plus the signal."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def _fileno(stream: object) -> int | None:
    try:
        return stream.fileno()  # type: ignore[attr-defined]
    except (AttributeError, OSError, ValueError):
        return None


def _exec_path(path: str) -> str:
    return path if "/" in path else os.path.join(".", path)


def _launch_failure(name: str) -> tuple[str, int]:
    if name.startswith("/"):
        if os.access(name, os.F_OK):
            return f"minishell:{name}: is directory\n", 126
        return f"minishell:{name}: No such file or directory\n", 127
    return f"minishell: {name}: command not found\n", 127


def _release(source: object) -> None:
    if source is not None and not isinstance(source, bytes):
        close = getattr(source, "close", None)
        if close is not None:
            close()


def _feed(pipe: IO[bytes], data: bytes) -> None:
    try:
        pipe.write(data)
    except OSError:
        pass
    finally:
        try:
            pipe.close()
        except OSError:
            pass


def _wait(process: subprocess.Popen) -> int:
    while True:
        try:
            return process.wait()
        except KeyboardInterrupt:
            continue


class _Pipeline:
    def __init__(self, state: ShellState, out: TextIO, err: TextIO, isolated: bool):
        self.state = state
        self.out = out
        self.err = err
        self.isolated = isolated
        self.out_fd = _fileno(out)
        self.err_fd = _fileno(err)
        self.threads: list[threading.Thread] = []
        self.stderr_chunks: list[bytes] = []

    def _thread(self, target: Callable[..., None], *args: object) -> None:
        thread = threading.Thread(target=target, args=args, daemon=True)
        thread.start()
        self.threads.append(thread)

    def _drain_stderr(self, pipe: IO[bytes]) -> None:
        with pipe:
            self.stderr_chunks.append(pipe.read())

    def start(self, command: Command, source: object, stdout: object):
        """Start an external command; return the process or a failure status."""
        name = command.args[0]
        if command.path is None:
            message, status = _launch_failure(name)
            _release(source)
            self.err.write(message)
            return status
        stdin_arg = subprocess.PIPE if isinstance(source, bytes) else source
        stderr_arg = self.err_fd if self.err_fd is not None else subprocess.PIPE
        if self.out_fd is not None:
            self.out.flush()
        if self.err_fd is not None:
            self.err.flush()
        try:
            process = subprocess.Popen(
                list(command.args),
                executable=_exec_path(command.path),
                stdin=stdin_arg,
                stdout=stdout,
                stderr=stderr_arg,
                env=self.state.env.as_dict(),
            )
        except OSError:
            message, status = _launch_failure(name)
            self.err.write(message)
            return status
        finally:
            if not isinstance(source, bytes):
                _release(source)
        if isinstance(source, bytes):
            self._thread(_feed, process.stdin, source)
        if stderr_arg is subprocess.PIPE:
            self._thread(self._drain_stderr, process.stderr)
        return process

    def builtin(self, args: Sequence[str]) -> tuple[str, int, ShellExit | None]:
        buffer = io.StringIO()
        state = self.state
        if self.isolated:
            state = ShellState(Environment(state.env.entries()), state.exit_code)
        try:
            status = run_builtin(args, state, buffer, self.err)
        except ShellExit as request:
            return buffer.getvalue(), request.status, request
        return buffer.getvalue(), status, None

    def run(self, commands: list[Command], heredocs: list[str | None]) -> int:
        count = len(commands)
        statuses = [0] * count
        processes: list[tuple[int, subprocess.Popen]] = []
        capture: subprocess.Popen | None = None
        previous: object = None
        try:
            for index, (command, heredoc) in enumerate(zip(commands, heredocs)):
                last = index == count - 1
                with ExitStack() as files:
                    try:
                        stdin_file, stdout_file = open_redirections(command, self.state)
                    except RedirectionError as problem:
                        self.err.write(str(problem))
                        _release(previous)
                        previous = b""
                        statuses[index] = RedirectionError.exit_code
                        continue
                    for handle in (stdin_file, stdout_file):
                        if handle is not None:
                            files.callback(handle.close)
                    if stdin_file is not None:
                        source: object = stdin_file
                    elif heredoc is not None:
                        source = heredoc.encode()
                    else:
                        source = previous
                    if source is not previous:
                        _release(previous)
                    previous = None

                    if not command.args:
                        _release(source)
                        statuses[index] = 0 if self.isolated else self.state.exit_code
                        previous = b""
                        continue

                    if is_builtin(command.args[0]):
                        if not isinstance(source, bytes):
                            _release(source)
                        text, statuses[index], request = self.builtin(command.args)
                        if not last:
                            previous = text.encode()
                        elif stdout_file is not None:
                            stdout_file.write(text.encode())
                            stdout_file.flush()
                        else:
                            self.out.write(text)
                        if request is not None and not self.isolated:
                            raise request
                        continue

                    if not last:
                        stdout_arg: object = subprocess.PIPE
                    elif stdout_file is not None:
                        stdout_arg = stdout_file
                    elif self.out_fd is not None:
                        stdout_arg = self.out_fd
                    else:
                        stdout_arg = subprocess.PIPE
                    result = self.start(command, source, stdout_arg)
                    if isinstance(result, int):
                        statuses[index] = result
                        previous = b""
                        continue
                    processes.append((index, result))
                    if not last:
                        previous = result.stdout
                    elif stdout_arg is subprocess.PIPE:
                        capture = result
            if capture is not None and capture.stdout is not None:
                with capture.stdout:
                    data = capture.stdout.read()
                self.out.write(data.decode(errors="replace"))
            for index, process in processes:
                statuses[index] = exit_status(_wait(process))
        finally:
            _release(previous)
            for thread in self.threads:
                thread.join()
            for chunk in self.stderr_chunks:
                self.err.write(chunk.decode(errors="replace"))
        return statuses[-1]


def run_pipeline(
    commands: Sequence[Command],
    state: ShellState,
    heredocs: Sequence[str | None] | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Run ``commands`` connected by pipes and return the status of the last one.

    ``heredocs`` gives each command's heredoc text (or None). A lone builtin
    runs on the shell's own state and may raise ShellExit; builtins inside a
    longer pipeline run on a copy. The status is stored in ``state``.
    """
    commands = list(commands)
    if not commands:
        return state.exit_code
    texts = list(heredocs) if heredocs is not None else [None] * len(commands)
    texts.extend([None] * (len(commands) - len(texts)))
    pipeline = _Pipeline(
        state,
        sys.stdout if out is None else out,
        sys.stderr if err is None else err,
        isolated=len(commands) > 1,
    )
    status = pipeline.run(commands, texts)
    state.exit_code = status
    return status