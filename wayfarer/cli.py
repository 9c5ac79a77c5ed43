"""
Wayfarer CLI - Command-line interface for the engine.

Usage:
    wayfarer observe --seed S                 Print the starting observation
    wayfarer run --seed S <plan.json>         Execute a plan, print ActionLogs
    wayfarer evaluate --seed S <plan.json>    Evaluate a plan without executing it

A plan file is a JSON list of actions, e.g.
    [{"type": "Move", "destination": "MINE"}, {"type": "Gather", "node_id": "iron-node"}]
"""

import argparse
import dataclasses
import json
import logging
import os
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Wayfarer - Deterministic Progression Simulation",
        prog="wayfarer",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    observe_parser = subparsers.add_parser("observe", help="Show what the player knows")
    observe_parser.add_argument("--seed", required=True, help="World seed")

    run_parser = subparsers.add_parser("run", help="Execute a plan")
    run_parser.add_argument("plan_file", help="Path to plan JSON")
    run_parser.add_argument("--seed", required=True, help="World seed")
    run_parser.add_argument("--ticks", type=int, default=None, help="Session length override")

    evaluate_parser = subparsers.add_parser("evaluate", help="Evaluate a plan")
    evaluate_parser.add_argument("plan_file", help="Path to plan JSON")
    evaluate_parser.add_argument("--seed", required=True, help="World seed")
    evaluate_parser.add_argument("--ticks", type=int, default=None, help="Session length override")

    args = parser.parse_args(argv)

    level = "DEBUG" if args.verbose else os.getenv("WAYFARER_LOG_LEVEL", "WARNING")
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "observe":
        return cmd_observe(args)
    elif args.command == "run":
        return cmd_run(args)
    elif args.command == "evaluate":
        return cmd_evaluate(args)
    else:
        parser.print_help()
        return 1


def _make_world(args):
    from .engine_core.config import WorldConfig
    from .world import create_world

    config = WorldConfig()
    if getattr(args, "ticks", None) is not None:
        config = dataclasses.replace(config, session_ticks=args.ticks)
    return create_world(args.seed, config)


def _load_plan(path):
    from .engine_core.action import ActionParseError, action_from_dict

    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error reading plan: {e}", file=sys.stderr)
        return None

    if not isinstance(data, list):
        print("Error: plan must be a JSON list of actions", file=sys.stderr)
        return None

    try:
        return [action_from_dict(item) for item in data]
    except ActionParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None


def _print_json(payload):
    print(json.dumps(payload, indent=2, default=str))


def cmd_observe(args):
    """Print the discovery-filtered observation of a fresh world."""
    from .bots import get_observation

    state = _make_world(args)
    _print_json(dataclasses.asdict(get_observation(state)))
    return 0


def cmd_run(args):
    """Execute each action of a plan in order."""
    from .engine_core.reducer import execute_action

    actions = _load_plan(args.plan_file)
    if actions is None:
        return 1

    state = _make_world(args)
    for action in actions:
        _print_json(execute_action(state, action).to_dict())
    return 0


def cmd_evaluate(args):
    """Evaluate a plan against a fresh world."""
    from .bots import evaluate_plan

    actions = _load_plan(args.plan_file)
    if actions is None:
        return 1

    state = _make_world(args)
    _print_json(dataclasses.asdict(evaluate_plan(state, actions)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
