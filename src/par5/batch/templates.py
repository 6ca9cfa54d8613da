"""Substitute a single list item into a command or prompt template."""

from __future__ import annotations

SHELL_PLACEHOLDER = "$item"
PROMPT_PLACEHOLDER = "{{item}}"


def shell_quote(value: str) -> str:
    """Quote ``value`` as exactly one POSIX shell word.

    Unlike :func:`shlex.quote` this always wraps the value, so the expanded
    command looks the same for every item.
    """
    return "'" + value.replace("'", "'\\''") + "'"


def expand_shell(template: str, item: str) -> str:
    """Replace every ``$item`` in a shell command with the quoted item."""
    return template.replace(SHELL_PLACEHOLDER, shell_quote(item))


def expand_prompt(template: str, item: str) -> str:
    """Replace every ``{{item}}`` in a prompt with the raw item text."""
    return template.replace(PROMPT_PLACEHOLDER, item)
