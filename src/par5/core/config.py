from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional

from .agents import Agent

DEFAULT_BATCH_SIZE = 10
DEFAULT_AGENT_TIMEOUT = 300.0
DEFAULT_KILL_GRACE = 5.0


class ConfigError(ValueError):
    """Raised when the operator configuration cannot be used."""


def default_results_dir() -> Path:
    return Path(tempfile.gettempdir()) / "par5-mcp-results"


@dataclass
class RunConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    results_dir: Path = field(default_factory=default_results_dir)
    shell: str = "sh"
    shell_timeout: Optional[float] = None
    agent_timeout: Optional[float] = DEFAULT_AGENT_TIMEOUT
    kill_grace: float = DEFAULT_KILL_GRACE
    agent_args: str = ""
    per_agent_args: Dict[Agent, str] = field(default_factory=dict)
    disabled_agents: FrozenSet[Agent] = frozenset()

    def __post_init__(self) -> None:
        if isinstance(self.batch_size, bool) or not isinstance(self.batch_size, int):
            raise ConfigError(f"batch_size must be an integer, got {self.batch_size!r}")
        if self.batch_size < 1:
            raise ConfigError(f"batch_size must be at least 1, got {self.batch_size}")
        if self.kill_grace < 0:
            raise ConfigError(f"kill_grace must not be negative, got {self.kill_grace}")
        self.results_dir = Path(self.results_dir)
        self.shell_timeout = _deadline(self.shell_timeout)
        self.agent_timeout = _deadline(self.agent_timeout)
        self.disabled_agents = frozenset(Agent(a) for a in self.disabled_agents)

    @property
    def enabled_agents(self) -> List[Agent]:
        """Agents that may be selected, in declaration order."""
        return [agent for agent in Agent if agent not in self.disabled_agents]

    def extra_args_for(self, agent: Agent) -> str:
        return self.per_agent_args.get(agent, "")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> RunConfig:
        """Build a config from ``PAR5_*`` environment variables."""
        env = os.environ if environ is None else environ

        kwargs: Dict[str, object] = {
            "batch_size": _int(env, "PAR5_BATCH_SIZE", DEFAULT_BATCH_SIZE),
            "shell": env.get("PAR5_SHELL") or "sh",
            "shell_timeout": _float(env, "PAR5_SHELL_TIMEOUT", None),
            "agent_timeout": _float(env, "PAR5_AGENT_TIMEOUT", DEFAULT_AGENT_TIMEOUT),
            "kill_grace": _float(env, "PAR5_KILL_GRACE", DEFAULT_KILL_GRACE),
            "agent_args": env.get("PAR5_AGENT_ARGS", ""),
            "per_agent_args": {
                agent: env[agent.args_env_var]
                for agent in Agent
                if env.get(agent.args_env_var)
            },
            "disabled_agents": frozenset(
                agent for agent in Agent if env.get(agent.disable_env_var)
            ),
        }
        if env.get("PAR5_RESULTS_DIR"):
            kwargs["results_dir"] = Path(env["PAR5_RESULTS_DIR"]).expanduser()
        return cls(**kwargs)


def _deadline(value: Optional[float]) -> Optional[float]:
    # Non-positive deadlines mean "run without a deadline".
    if value is None or value <= 0:
        return None
    return float(value)


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _float(env: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}") from exc
