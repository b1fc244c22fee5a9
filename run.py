import asyncio
import json
import os
import sys
from typing import Dict, List, Tuple

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from orchestra.config import reload_config
from orchestra.core import create_orchestrator
from orchestra.logger import log


def _parse_cli_args(extra_args: List[str]) -> Tuple[Dict[str, object], List[str]]:
    """Parse CLI-style ``--key value`` pairs and return remaining positional args."""

    consumed_indexes: set[int] = set()
    cli_params: Dict[str, object] = {}

    i = 0
    while i < len(extra_args):
        token = extra_args[i]
        if token.startswith("--") and len(token) > 2:
            key = token[2:].strip().replace("-", "_")
            if not key:
                i += 1
                continue
            consumed_indexes.add(i)
            value: object = True
            if i + 1 < len(extra_args) and not extra_args[i + 1].startswith("--"):
                value = extra_args[i + 1]
                consumed_indexes.add(i + 1)
                i += 2
            else:
                i += 1
            cli_params[key] = value
        else:
            i += 1

    residual = [token for idx, token in enumerate(extra_args) if idx not in consumed_indexes]
    return cli_params, residual


def _print_usage() -> None:
    usage = (
        "Usage:\n"
        "  python run.py tools [--category <category>]\n"
        "  python run.py agents [--type <agent_type>]\n"
        "  python run.py task <task_name> [--key value ...] [--user-id <id>]\n"
        "  python run.py stats\n"
    )
    print(usage.strip())


def _dump(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    if not args:
        _print_usage()
        return 1

    reload_config()
    command, rest = args[0], args[1:]

    try:
        cli_params, residual_args = _parse_cli_args(rest)
    except ValueError as exc:
        print(f"[dispatcher error] {exc}", file=sys.stderr)
        return 1

    try:
        orchestrator = create_orchestrator("basic")
    except Exception as exc:
        print(f"[dispatcher error] {type(exc).__name__}: {exc}", file=sys.stderr)
        return 2

    if command == "tools":
        category = cli_params.get("category")
        tools = orchestrator.get_available_tools(category if isinstance(category, str) else None)
        _dump([tool.definition.model_dump() for tool in tools])
        return 0

    if command == "agents":
        agent_type = cli_params.get("type")
        agents = orchestrator.get_available_agents(agent_type if isinstance(agent_type, str) else None)
        _dump([agent.definition.model_dump() for agent in agents])
        return 0

    if command == "stats":
        _dump(orchestrator.get_system_statistics().model_dump())
        return 0

    if command == "task":
        if not residual_args:
            print("[dispatcher error] Missing task name after 'task' command.", file=sys.stderr)
            _print_usage()
            return 1
        task_name = residual_args[0]
        user_id = cli_params.pop("user_id", None)
        if isinstance(user_id, bool):
            print("[dispatcher error] --user-id flag requires a value.", file=sys.stderr)
            return 1

        log(f"[dispatcher] executing task '{task_name}'")
        result = asyncio.run(
            orchestrator.execute_task({"task": task_name, "parameters": cli_params}, user_id)
        )
        _dump(result.model_dump())
        return 0 if result.success else 1

    print(f"[dispatcher error] Unknown command '{command}'.", file=sys.stderr)
    _print_usage()
    return 1


if __name__ == "__main__":
    sys.exit(main())
