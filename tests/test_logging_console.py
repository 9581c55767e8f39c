import pytest

from pr_review_agent.logging import console


def test_truncate_text_respects_verbose() -> None:
    console.set_verbose(False)
    assert console.truncate_text("abcdef", 3) == "abc..."

    console.set_verbose(True)
    assert console.truncate_text("abcdef", 3) == "abcdef"

    console.set_verbose(False)


def test_format_arguments() -> None:
    output = console._format_arguments(
        {
            "body": "line1\nline2" + "x" * 120,
            "meta": {"k": "v"},
            "items": [1, 2],
            "flag": True,
            "count": 3,
        }
    )
    assert "line1" in output
    assert "x" * 120 in output
    assert '"k": "v"' in output
    assert "items" in output
    assert "true" in output
    assert "3" in output


def test_format_arguments_empty() -> None:
    assert console._format_arguments(None) == ""
    assert console._format_arguments({}) == ""


@pytest.mark.parametrize(
    ("tool_name", "arguments", "expected"),
    [
        ("Read", {"file_path": "src/app.py"}, "src/app.py"),
        ("Grep", {"pattern": "TODO"}, "TODO"),
        ("Bash", {"command": "gh pr diff 42"}, "gh pr diff 42"),
        ("Bash", {"command": "gh pr diff 42", "description": "Show diff"}, "Show diff"),
        ("Task", {"a": 1, "b": 2, "c": 3, "d": 4}, "{a=..., b=..., c=..., +1 more}"),
        ("Bash", None, ""),
    ],
)
def test_quiet_summary(
    tool_name: str, arguments: dict[str, object] | None, expected: str
) -> None:
    assert console._get_quiet_summary(tool_name, arguments) == expected


def test_log_tool_and_agent_text_output(capsys: pytest.CaptureFixture[str]) -> None:
    console.set_verbose(False)
    console.log_tool("Bash", arguments={"command": "gh pr view 42", "timeout": 30})
    console.log_agent_text("hello world")
    console.log("!", "message")

    output = capsys.readouterr().out
    assert "Bash" in output
    assert "gh pr view 42" in output
    assert "timeout" not in output
    assert "[assistant]" in output
    assert "hello world" in output
    assert "message" in output


def test_log_tool_verbose_shows_every_argument(capsys: pytest.CaptureFixture[str]) -> None:
    console.set_verbose(True)
    console.log_tool("Bash", arguments={"command": "gh pr view 42", "timeout": 30})

    output = capsys.readouterr().out
    assert "command" in output
    assert "timeout" in output
    assert "30" in output


def test_log_agent_text_truncates_in_quiet_mode(capsys: pytest.CaptureFixture[str]) -> None:
    console.set_verbose(False)
    console.log_agent_text("y" * 150)

    output = capsys.readouterr().out
    assert "y" * 100 + "..." in output
    assert "y" * 101 not in output
