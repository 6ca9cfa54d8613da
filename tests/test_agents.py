"""Tests for the agent catalogue."""

import pytest

from par5.core.agents import Agent


def test_agent_values():
    """The closed set of agents and their string values."""
    assert [a.value for a in Agent] == ["claude", "gemini", "codex"]
    assert Agent("codex") is Agent.CODEX
    with pytest.raises(ValueError):
        Agent("copilot")


def test_env_var_names():
    """Each agent has its own args and disable variables."""
    assert Agent.CLAUDE.args_env_var == "PAR5_CLAUDE_ARGS"
    assert Agent.GEMINI.disable_env_var == "PAR5_DISABLE_GEMINI"
    assert Agent.CODEX.args_env_var == "PAR5_CODEX_ARGS"


@pytest.mark.parametrize(
    "agent, expected",
    [
        (
            Agent.CLAUDE,
            "claude --dangerously-skip-permissions --output-format stream-json --verbose -p",
        ),
        (Agent.GEMINI, "gemini --yolo --output-format stream-json"),
        (Agent.CODEX, "codex exec --dangerously-bypass-approvals-and-sandbox"),
    ],
)
def test_command_prefix_without_extra_args(agent, expected):
    """Fixed non-interactive flags are always present."""
    assert agent.command_prefix() == expected


def test_command_prefix_appends_extra_args_in_order():
    """Global args come before per-agent args; blanks are skipped."""
    assert (
        Agent.GEMINI.command_prefix("--sandbox", " -m flash ")
        == "gemini --yolo --output-format stream-json --sandbox -m flash"
    )
    assert (
        Agent.CODEX.command_prefix("", "--model o3")
        == "codex exec --dangerously-bypass-approvals-and-sandbox --model o3"
    )
    assert Agent.CLAUDE.command_prefix("  ", "").endswith("--verbose -p")


def test_display_names_and_descriptions():
    """Human-readable names used in summaries and tool docs."""
    assert Agent.CLAUDE.display_name == "Claude Code"
    assert Agent.GEMINI.display_name == "Google Gemini"
    assert Agent.CODEX.display_name == "OpenAI Codex"
    assert all(a.description.startswith(f"{a.value}:") for a in Agent)
