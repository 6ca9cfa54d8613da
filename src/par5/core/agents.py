"""Supported agent CLIs and how each one is invoked non-interactively."""

from __future__ import annotations

from enum import Enum
from typing import Tuple


class Agent(str, Enum):
    """Closed set of agent programs that can be fanned out across a list.

    Each member carries its fixed auto-approve flags and the environment
    variables that feed it extra arguments or disable it.
    """

    CLAUDE = "claude"
    GEMINI = "gemini"
    CODEX = "codex"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def base_command(self) -> Tuple[str, ...]:
        """Executable plus the flags baked in for unattended runs."""
        return _BASE_COMMANDS[self]

    @property
    def args_env_var(self) -> str:
        return f"PAR5_{self.name}_ARGS"

    @property
    def disable_env_var(self) -> str:
        return f"PAR5_DISABLE_{self.name}"

    def command_prefix(self, global_args: str = "", agent_args: str = "") -> str:
        """Return the command line up to, but not including, the prompt.

        Extra args come from operator configuration and are inserted verbatim.
        The caller appends the prompt as a single quoted argument.
        """
        parts = list(self.base_command)
        parts.extend(arg for arg in (global_args.strip(), agent_args.strip()) if arg)
        if self is Agent.CLAUDE:
            parts.append("-p")
        return " ".join(parts)


_DISPLAY_NAMES = {
    Agent.CLAUDE: "Claude Code",
    Agent.GEMINI: "Google Gemini",
    Agent.CODEX: "OpenAI Codex",
}

_DESCRIPTIONS = {
    Agent.CLAUDE: "claude: Claude Code CLI (runs with --dangerously-skip-permissions)",
    Agent.GEMINI: "gemini: Google Gemini CLI (runs with --yolo)",
    Agent.CODEX: "codex: OpenAI Codex CLI (runs with --dangerously-bypass-approvals-and-sandbox)",
}

_BASE_COMMANDS = {
    Agent.CLAUDE: (
        "claude",
        "--dangerously-skip-permissions",
        "--output-format",
        "stream-json",
        "--verbose",
    ),
    Agent.GEMINI: ("gemini", "--yolo", "--output-format", "stream-json"),
    Agent.CODEX: ("codex", "exec", "--dangerously-bypass-approvals-and-sandbox"),
}
