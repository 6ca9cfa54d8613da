import logging
import os
import sys
from typing import Annotated, List, Literal, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import Field

from par5.batch.processors import BatchAgentProcessor, BatchShellProcessor
from par5.batch.runner import capture_output
from par5.core.agents import Agent
from par5.core.config import RunConfig
from par5.core.registry import ListNotFoundError, ListStore

logger = logging.getLogger(__name__)

ListId = Annotated[str, Field(description="The list ID returned by create_list.")]
Items = Annotated[
    List[str],
    Field(
        description=(
            "Items to store. Each item can be a file path, URL, identifier or any "
            "string that will be substituted into commands or prompts."
        )
    ),
]


def _lookup(store: ListStore, list_id: str):
    try:
        return store.get(list_id)
    except ListNotFoundError as exc:
        raise ToolError(
            f"{exc}. Call create_list first, then pass the returned ID to this tool."
        ) from exc


async def create_list(store: ListStore, items: List[str]) -> str:
    list_id = store.create(items)
    logger.info("Created list %s with %d items", list_id, len(items))
    return (
        f'Created a list with {len(items)} items. The list ID is "{list_id}". '
        "Pass it to run_shell_across_list or run_agent_across_list to process "
        "every item in parallel; output is streamed to one file pair per item."
    )


async def create_list_from_shell(store: ListStore, config: RunConfig, command: str) -> str:
    """Create a list from the non-empty lines a shell command prints."""
    try:
        returncode, stdout, stderr = await capture_output(command, shell=config.shell)
    except (OSError, ValueError) as exc:
        raise ToolError(f"Failed to execute command: {exc}") from exc

    if returncode != 0 and stderr:
        raise ToolError(f"Command exited with code {returncode}.\n\nstderr:\n{stderr}")

    items = [line.strip() for line in stdout.split("\n") if line.strip()]
    note = f"\n\nNote: the command wrote to stderr:\n{stderr}" if stderr else ""
    if not items:
        return f"Warning: the command produced no output, so no list was created.{note}"

    list_id = store.create(items)
    logger.info("Created list %s with %d items from %r", list_id, len(items), command)
    return (
        f'Created a list with {len(items)} items from the command output. '
        f'The list ID is "{list_id}".{note}'
    )


async def get_list(store: ListStore, list_id: str) -> str:
    items = _lookup(store, list_id)
    lines = "\n".join(f"{number}. {item}" for number, item in enumerate(items, start=1))
    return f'List "{list_id}" contains {len(items)} items:\n\n{lines}'


async def update_list(store: ListStore, list_id: str, items: List[str]) -> str:
    try:
        old_count = store.update(list_id, items)
    except ListNotFoundError as exc:
        raise ToolError(f"{exc}. Use create_list to create a new list.") from exc
    return (
        f'Updated list "{list_id}": it went from {old_count} items to {len(items)} items.'
    )


async def delete_list(store: ListStore, list_id: str) -> str:
    try:
        count = store.delete(list_id)
    except ListNotFoundError as exc:
        raise ToolError(f"{exc}. It may already have been deleted.") from exc
    return f'Deleted list "{list_id}", which held {count} items.'


async def list_all_lists(store: ListStore) -> str:
    counts = store.counts()
    if not counts:
        return "No lists exist. Use create_list to create one."
    lines = "\n".join(f'- "{list_id}": {count} items' for list_id, count in counts.items())
    return f"Found {len(counts)} list(s):\n\n{lines}"


async def run_shell_across_list(
    store: ListStore, config: RunConfig, list_id: str, command: str
) -> str:
    items = _lookup(store, list_id)
    summary = await BatchShellProcessor(config).process(items, command)
    return summary.to_text()


async def run_agent_across_list(
    store: ListStore, config: RunConfig, list_id: str, agent: str, prompt: str
) -> str:
    items = _lookup(store, list_id)
    try:
        selected = Agent(agent)
    except ValueError as exc:
        raise ToolError(f"Unknown agent {agent!r}") from exc
    if selected not in config.enabled_agents:
        raise ToolError(f"Agent {agent!r} is disabled on this server")
    summary = await BatchAgentProcessor(config).process(items, prompt, selected)
    return summary.to_text()


def create_server(
    config: Optional[RunConfig] = None,
    store: Optional[ListStore] = None,
) -> FastMCP:
    """Build the MCP server with all list and run tools registered.

    ``run_agent_across_list`` is only registered when at least one agent is
    enabled, and only enabled agents are accepted by it.
    """
    config = config or RunConfig.from_env()
    store = store if store is not None else ListStore()
    width = config.batch_size

    mcp = FastMCP(
        "par5",
        instructions=(
            "Create lists of items (files, URLs, ids) and run a shell command or "
            "an AI coding agent across every item in parallel batches."
        ),
    )

    @mcp.tool(
        name="create_list",
        description=(
            "Create a named list of items for parallel processing. Use the returned "
            "list ID with run_shell_across_list or run_agent_across_list."
        ),
    )
    async def create_list_tool(items: Items) -> str:
        return await create_list(store, items)

    @mcp.tool(
        name="create_list_from_shell",
        description=(
            "Create a list from the newline-separated stdout of a shell command, "
            "e.g. \"git ls-files '*.py'\". Empty lines are dropped."
        ),
    )
    async def create_list_from_shell_tool(
        command: Annotated[str, Field(description="Shell command whose output lines become items.")],
    ) -> str:
        return await create_list_from_shell(store, config, command)

    @mcp.tool(name="get_list", description="Show the items of an existing list.")
    async def get_list_tool(list_id: ListId) -> str:
        return await get_list(store, list_id)

    @mcp.tool(name="update_list", description="Replace the items of an existing list.")
    async def update_list_tool(list_id: ListId, items: Items) -> str:
        return await update_list(store, list_id, items)

    @mcp.tool(name="delete_list", description="Delete an existing list.")
    async def delete_list_tool(list_id: ListId) -> str:
        return await delete_list(store, list_id)

    @mcp.tool(name="list_all_lists", description="Show every existing list and its item count.")
    async def list_all_lists_tool() -> str:
        return await list_all_lists(store)

    @mcp.tool(
        name="run_shell_across_list",
        description=(
            f"Run a shell command once per list item, in batches of {width} parallel "
            "processes. $item in the command is replaced by the shell-quoted item, "
            "e.g. 'wc -l $item'. stdout and stderr of each command are streamed to "
            "separate files; the tool returns their paths once every command has "
            "finished."
        ),
    )
    async def run_shell_across_list_tool(
        list_id: ListId,
        command: Annotated[
            str, Field(description="Shell command template using $item as the placeholder.")
        ],
    ) -> str:
        return await run_shell_across_list(store, config, list_id, command)

    enabled = config.enabled_agents
    if enabled:
        AgentName = Literal[tuple(agent.value for agent in enabled)]
        agents_doc = "\n".join(f"- {agent.description}" for agent in enabled)
        timeout = (
            f"{config.agent_timeout:g}s timeout per agent"
            if config.agent_timeout
            else "no timeout"
        )

        @mcp.tool(
            name="run_agent_across_list",
            description=(
                f"Run an AI coding agent once per list item, in batches of {width} "
                f"parallel processes with permission prompts skipped ({timeout}). "
                "{{item}} in the prompt is replaced by the item.\n\n"
                f"AVAILABLE AGENTS:\n{agents_doc}"
            ),
        )
        async def run_agent_across_list_tool(
            list_id: ListId,
            agent: Annotated[AgentName, Field(description="Which agent CLI to run.")],
            prompt: Annotated[
                str,
                Field(description="Prompt template using {{item}} as the placeholder."),
            ],
        ) -> str:
            return await run_agent_across_list(store, config, list_id, agent, prompt)

    return mcp


def main():
    """Run the par5 MCP server over stdio."""
    # stdout carries the MCP protocol, so logs go to stderr.
    logging.basicConfig(
        stream=sys.stderr,
        level=os.environ.get("PAR5_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    mcp = create_server()
    logger.info("Starting par5 MCP (stdio)")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
