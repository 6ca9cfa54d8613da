"""Example script running a shell command across files without an MCP client.

    python examples/batch_example.py "wc -l $item" src/par5/batch/*.py --width 4
"""

import argparse
import asyncio
import json
from dataclasses import replace

from par5.batch import BatchShellProcessor
from par5.core.config import RunConfig


def parse_args():
    p = argparse.ArgumentParser(description="Fan a shell command out across items.")
    p.add_argument("command", help="Command template; $item is replaced by each item")
    p.add_argument("items", nargs="+", help="Items to process")
    p.add_argument("--width", type=int, default=None, help="Parallel processes per batch")
    p.add_argument("--timeout", type=float, default=None, help="Seconds before a command is stopped")
    p.add_argument("--json", action="store_true", help="Print the run summary as JSON")
    return p.parse_args()


async def main():
    args = parse_args()
    cfg = RunConfig.from_env()
    if args.width is not None:
        cfg = replace(cfg, batch_size=args.width)
    if args.timeout is not None:
        cfg = replace(cfg, shell_timeout=args.timeout)

    print("=" * 60)
    print(f"Running {args.command!r} across {len(args.items)} items (width {cfg.batch_size})")
    print("=" * 60)

    summary = await BatchShellProcessor(cfg).process(args.items, args.command)

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
        return

    for item, sinks in summary.entries:
        output = sinks.stdout.read_text(errors="replace").strip()
        errors = sinks.stderr.read_text(errors="replace").strip()
        print(f"\n[{item}]")
        print(output or "(no stdout)")
        if errors:
            print(f"stderr: {errors}")

    print(f"\n{summary.group_count} batch(es) in {summary.elapsed_seconds:.2f}s, files in {summary.run_dir}")


if __name__ == "__main__":
    asyncio.run(main())
