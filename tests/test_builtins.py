import io
import os

import pytest

from minishell.builtins import (
    ShellExit,
    cd,
    echo,
    env,
    exit_builtin,
    export,
    is_builtin,
    parse_exit_code,
    pwd,
    run_builtin,
    unset,
)
from minishell.environment import Environment, ShellState


def make_state(*entries):
    return ShellState(env=Environment(entries))


@pytest.mark.parametrize(
    "name", ["pwd", "echo", "cd", "export", "unset", "env", "exit"]
)
def test_is_builtin_true(name):
    assert is_builtin(name) is True


@pytest.mark.parametrize("name", ["ls", "Echo", "", None])
def test_is_builtin_false(name):
    assert is_builtin(name) is False


def test_parse_exit_code_plain():
    assert parse_exit_code("42") == 42


def test_parse_exit_code_sign_and_space():
    assert parse_exit_code("  -5") == -5
    assert parse_exit_code("+7") == 7


def test_parse_exit_code_stops_at_non_digit():
    assert parse_exit_code("12abc") == 12
    assert parse_exit_code("") == 0


def test_parse_exit_code_overflow_gives_one():
    assert parse_exit_code("9223372036854775808") == 1


def test_echo_without_args_prints_newline():
    out = io.StringIO()
    echo(["echo"], out)
    assert out.getvalue() == "\n"


def test_echo_words_followed_by_space():
    out = io.StringIO()
    echo(["echo", "hi", "there"], out)
    assert out.getvalue() == "hi there \n"


def test_echo_n_flags_suppress_newline():
    out = io.StringIO()
    echo(["echo", "-nnn", "-n", "x"], out)
    assert out.getvalue() == "x "


def test_echo_invalid_flag_is_printed():
    out = io.StringIO()
    echo(["echo", "-nx", "y"], out)
    assert out.getvalue() == "-nx y \n"


def test_cd_changes_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    sub = tmp_path / "sub"
    sub.mkdir()
    state = make_state()
    err = io.StringIO()
    cd(["cd", str(sub)], state, err)
    assert os.path.samefile(os.getcwd(), sub)
    assert err.getvalue() == ""


def test_cd_without_args_goes_home(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    state = make_state()
    err = io.StringIO()
    cd(["cd"], state, err)
    assert os.path.samefile(os.getcwd(), home)
    assert err.getvalue() == ""
    assert state.exit_code == 0


def test_cd_missing_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = make_state()
    err = io.StringIO()
    missing = str(tmp_path / "missing")
    cd(["cd", missing], state, err)
    assert err.getvalue() == f"minishell: {missing}: No such file or directory\n"
    assert state.exit_code == 1
    assert os.path.samefile(os.getcwd(), tmp_path)


def test_pwd_prints_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = io.StringIO()
    pwd(make_state(), out, io.StringIO())
    assert out.getvalue() == f"{os.getcwd()}\n"


def test_env_prints_only_entries_with_value():
    out = io.StringIO()
    env(make_state("A=1", "B", "C=3"), out)
    assert out.getvalue() == "A=1\nC=3\n"


def test_export_without_args_lists_sorted():
    state = make_state("b=2", "a=1", "C")
    out = io.StringIO()
    export(["export"], state, out, io.StringIO())
    lines = out.getvalue().splitlines()
    assert lines == ["declare -x C", "declare -x a=1", "declare -x b=2"]
    assert state.env.entries() == ["C", "a=1", "b=2"]


def test_export_adds_and_replaces():
    state = make_state("A=1")
    export(["export", "A=new", "B=2"], state, io.StringIO(), io.StringIO())
    assert state.env.entries() == ["A=new", "B=2"]


def test_export_invalid_identifier_changes_nothing():
    state = make_state("A=1")
    err = io.StringIO()
    export(["export", "B=2", "1x=3"], state, io.StringIO(), err)
    assert err.getvalue() == "minishell: export: `1x=3': not a valid identifier\n"
    assert state.exit_code == 1
    assert state.env.entries() == ["A=1"]


def test_unset_removes_variables():
    state = make_state("A=1", "B=2", "C=3")
    unset(["unset", "A", "C"], state, io.StringIO())
    assert state.env.entries() == ["B=2"]


def test_unset_invalid_identifier_changes_nothing():
    state = make_state("A=1")
    err = io.StringIO()
    unset(["unset", "A", "-x"], state, err)
    assert err.getvalue() == "minishell : `-x': not a valid identifier\n"
    assert state.exit_code == 1
    assert state.env.entries() == ["A=1"]


def test_exit_without_args():
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit"], make_state(), io.StringIO())
    assert info.value.status == 0


def test_exit_with_number():
    state = make_state()
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit", "42"], state, io.StringIO())
    assert info.value.status == 42
    assert state.exit_code == 42


def test_exit_non_numeric():
    out = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit", "abc"], make_state(), out)
    assert info.value.status == 255
    assert out.getvalue() == "bash: exit: abc: Numeric argumrnts required\n"


def test_exit_too_many_arguments_does_not_exit():
    state = make_state()
    out = io.StringIO()
    exit_builtin(["exit", "1", "2"], state, out)
    assert out.getvalue() == "exit\nbash: exit: too many arguments\n"
    assert state.exit_code == 1


def test_exit_beyond_limit_is_numeric_error():
    out = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit", "9223372036854775808"], make_state(), out)
    assert info.value.status == 255
    assert "Numeric argumrnts required" in out.getvalue()


def test_run_builtin_dispatches_echo():
    out = io.StringIO()
    state = make_state()
    state.exit_code = 3
    result = run_builtin(["echo", "-n", "ok"], state, out, io.StringIO())
    assert out.getvalue() == "ok "
    assert result == 3


def test_run_builtin_rejects_other_commands():
    with pytest.raises(ValueError):
        run_builtin(["ls"], make_state(), io.StringIO(), io.StringIO())