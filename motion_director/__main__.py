"""
Interactive runner: open a project and send prompts from stdin

Usage: python -m motion_director <project_id> [--log-level DEBUG]
Commands: /reset clears the session, /switch <id> opens another project, /quit exits.
"""

import argparse
import asyncio
import sys

from .core.config import configure_logging
from .session import SessionManager


async def run(project_id: str, lines=None, out=None):
    lines = lines if lines is not None else sys.stdin
    out = out or sys.stdout
    manager = SessionManager()
    await manager.switch_project(project_id)
    try:
        for raw in lines:
            line = raw.strip()
            if not line:
                continue
            if line == "/quit":
                break
            if line == "/reset":
                await manager.reset_session()
                print("Session reset.", file=out)
                continue
            if line.startswith("/switch "):
                await manager.switch_project(line.split(maxsplit=1)[1])
                print(f"Switched to {manager.current_project_id}", file=out)
                continue

            result = await manager.process_prompt(line)
            if not result.success:
                print(f"Error: {result.error}", file=out)
                continue
            print(result.message, file=out)
            if result.incomplete:
                print("(stopped before the project was complete)", file=out)
    finally:
        await manager.close()


def main(argv=None):
    parser = argparse.ArgumentParser(prog="motion_director")
    parser.add_argument("project_id")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    asyncio.run(run(args.project_id))


if __name__ == "__main__":
    main()
