import pytest

from minishell.environment import Environment
from minishell.expand import expand_dollar

USER = "alice"
HOME = "/home/alice"


@pytest.fixture
def env():
    return Environment([f"USER={USER}", f"HOME={HOME}", "EMPTY"])


@pytest.mark.parametrize("line", ["ls -la", "echo hello world", "", "cat > out.txt"])
def test_plain_text_unchanged(env, line):
    assert expand_dollar(line, env, 0) == line


def test_variable_expanded(env):
    assert expand_dollar("echo $USER", env, 0) == f"echo {USER}"


def test_unknown_variable_is_empty(env):
    assert expand_dollar("echo $NOPE", env, 0) == "echo "


def test_variable_name_stops_at_digit(env):
    assert expand_dollar("$USER1", env, 0) == f"{USER}1"


def test_variable_name_stops_at_slash(env):
    assert expand_dollar("$HOME/docs", env, 0) == f"{HOME}/docs"


def test_exit_status(env):
    assert expand_dollar("echo $?", env, 42) == "echo 42"


def test_repeated_exit_status(env):
    assert expand_dollar("$?$?", env, 7) == "77"


def test_single_quotes_not_expanded(env):
    line = "echo '$USER'"
    assert expand_dollar(line, env, 0) == line


def test_double_quotes_expanded_and_kept(env):
    assert expand_dollar('"$USER"', env, 0) == f'"{USER}"'


def test_double_quotes_with_status(env):
    assert expand_dollar('"$USER is $?"', env, 3) == f'"{USER} is 3"'


def test_double_quoted_name_runs_to_space_or_quote(env):
    assert expand_dollar('"$HOME/x"', env, 0) == '""'


def test_dollar_at_end_kept(env):
    assert expand_dollar("echo $", env, 0) == "echo $"


def test_dollar_before_space_kept(env):
    assert expand_dollar("a $ b", env, 0) == "a $ b"


def test_dollar_digit_dropped(env):
    assert expand_dollar("echo $9x", env, 0) == "echo x"


def test_heredoc_limiter_not_expanded(env):
    line = "cat << $USER"
    assert expand_dollar(line, env, 0) == line


def test_heredoc_limiter_quotes_removed(env):
    assert expand_dollar('cat << "EOF"', env, 0) == "cat << EOF"


def test_heredoc_spaces_collapsed(env):
    assert expand_dollar("cat <<   EOF", env, 0) == expand_dollar("cat << EOF", env, 0)


def test_entry_without_value_expands_empty(env):
    assert expand_dollar("[$EMPTY]", env, 0) == "[]"


def test_prefix_quirk_hides_longer_name():
    table = Environment(["HOME=/h", "HOMEX=/x"])
    assert expand_dollar("$HOMEX", table, 0) == ""
    assert expand_dollar("$HOME", table, 0) == "/h"