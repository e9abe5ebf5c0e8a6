# minishell

A small interactive shell. It reads command lines from a prompt and runs them.
It supports:

- pipelines joined with `|`
- input, output and append redirections: `<`, `>`, `>>`
- here-documents with `<<`
- single and double quotes
- `$NAME` variable expansion and `$?` for the last exit status
- the built-in commands `echo` (with `-n`), `cd`, `pwd`, `export`, `unset`,
  `env` and `exit`

Other commands are looked up on `PATH` and started as child processes. They
get the shell's own variables as their environment.

Syntax errors are reported as
`Minishell: syntax error near unexpected token ...` and set the exit status
to 258. Syntax errors include an unclosed quote, a stray or doubled `|`, and
a redirection with no target.

## Installing

```
pip install .
```

## Running

```
minishell
```

The shell shows the prompt `Minishell$ ` and runs each line you enter. To
leave it, press Ctrl-D on an empty line. The shell then prints `exit` and ends
with the status of the last command. You can also leave with `exit [n]`.

Ctrl-C at the prompt starts a new line and sets the status to 1. Ctrl-C while
a here-document is being read cancels that command line.

```
Minishell$ export GREETING=hello
Minishell$ echo "$GREETING world" | cat > out.txt
Minishell$ cat << END
> first line
> END
first line
Minishell$ echo $?
0
```

Some details of the built-ins:

- `echo` writes a space after every word, including the last one.
- `export` with no arguments lists every variable as `declare -x NAME=value`,
  sorted.
- An output redirection `>` creates the file but does not truncate it.

## Using it from Python

`minishell.shell.Shell` runs single lines without a terminal. You give it:

- the variables to start with, as a mapping or as `NAME=value` strings;
- a function that reads here-document lines: it is called with a prompt and
  returns `None` at end of input;
- the output and error streams.

```python
import io
from minishell.shell import Shell

out = io.StringIO()
shell = Shell({"PATH": "/usr/bin:/bin"}, read_line=lambda prompt: None,
              out=out, err=io.StringIO())
status = shell.execute("echo -n hi")
print(repr(out.getvalue()), status)   # 'hi ' 0
```

`Shell.execute` returns the status of the line. The `exit` built-in raises
`minishell.builtins.ShellExit`, which carries the requested `status`.
`Shell.run` reads lines with the `read_line` function until end of input or
`exit`, and returns the final status.

The steps can also be used on their own:

- `minishell.syntax.validate` checks a line and splits it into pipeline
  segments. It raises `ShellSyntaxError` for malformed input.
- `minishell.expand.expand_dollar` expands variables and `$?`.
- `minishell.lexer.parse_pipeline` turns segments into `Command` objects. Each
  `Command` has its arguments, redirections, here-document limiters and
  resolved path.
- `minishell.executor.run_pipeline` runs a list of commands and returns the
  status of the last one.
- `minishell.environment.Environment` is the variable table.

## What it does not do

The shell has no command separators or operators besides `|`. There is no
`;`, `&&`, `||` or `&`. It has no wildcard expansion, no job control and no
subshells. Assignments such as `NAME=value` are only made through `export`.

## Running the tests

```
pip install .[test]
pytest
```