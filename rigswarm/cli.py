#!/usr/bin/env python3
"""
rigswarm CLI

Command-line interface for managing polecats and assigning work across a
rig's swarm.
"""

import argparse
import json
import logging
import platform
import sys
from datetime import datetime, timezone
from pathlib import Path

from rigswarm import __version__
from rigswarm.config import SwarmConfig
from rigswarm.errors import RigSwarmError
from rigswarm.polecat import PolecatManager, State
from rigswarm.rig import Rig
from rigswarm.swarm import SwarmManager

# Build metadata, stamped by release tooling
VERSION = __version__
BUILD = "dev"
COMMIT = ""
BRANCH = ""

STATE_ICONS = {
    State.IDLE: "○",
    State.ACTIVE: "◐",
    State.WORKING: "●",
    State.DONE: "✓",
    State.STUCK: "✗",
}


def _load(args):
    """Build the rig reference, config and managers for a command."""
    rig = Rig.load(Path(args.rig))
    config = SwarmConfig.load(rig.path)
    polecats = PolecatManager(rig, config=config)
    return rig, polecats, SwarmManager(rig, polecats=polecats)


def _print_polecat(polecat, as_json: bool = False):
    if as_json:
        print(json.dumps(polecat.to_dict(), indent=2))
        return

    icon = STATE_ICONS.get(polecat.state, "?")
    print(f"{icon} {polecat.name}")
    print(f"  State: {polecat.state.value}" + (f" | Issue: {polecat.issue}" if polecat.issue else ""))
    print(f"  Branch: {polecat.branch}")
    print(f"  Path: {polecat.clone_path}")
    if polecat.updated_at:
        print(f"  Updated: {polecat.updated_at.isoformat()}")


# ============================================================================
# Polecat Commands
# ============================================================================

def cmd_polecat_add(args):
    """Create a new polecat."""
    _, polecats, _ = _load(args)
    polecat = polecats.add(args.name)
    print(f"Created polecat {polecat.name} on branch {polecat.branch}")
    print(f"  Path: {polecat.clone_path}")


def cmd_polecat_remove(args):
    """Remove a polecat and its workspace."""
    _, polecats, _ = _load(args)
    polecats.remove(args.name, force=args.force)
    print(f"Removed polecat {args.name}")


def cmd_polecat_list(args):
    """List the polecats of the rig."""
    rig, polecats, _ = _load(args)
    pool = polecats.list()

    if args.json:
        print(json.dumps([p.to_dict() for p in pool], indent=2))
        return

    if not pool:
        print(f"No polecats in rig {rig.name}.")
        return

    print(f"Found {len(pool)} polecat(s) in rig {rig.name}:\n")
    for polecat in pool:
        _print_polecat(polecat)
        print()


def cmd_polecat_show(args):
    """Show one polecat."""
    _, polecats, _ = _load(args)
    _print_polecat(polecats.get(args.name), as_json=args.json)


def cmd_polecat_wake(args):
    _, polecats, _ = _load(args)
    polecat = polecats.wake(args.name)
    print(f"Polecat {polecat.name} is now {polecat.state.value}")


def cmd_polecat_sleep(args):
    _, polecats, _ = _load(args)
    polecat = polecats.sleep(args.name)
    print(f"Polecat {polecat.name} is now {polecat.state.value}")


def cmd_polecat_state(args):
    """Force a polecat into a state."""
    _, polecats, _ = _load(args)
    polecat = polecats.set_state(args.name, State(args.state))
    print(f"Polecat {polecat.name} is now {polecat.state.value}")


# ============================================================================
# Swarm Commands
# ============================================================================

def cmd_swarm_assign(args):
    """Assign an issue to the next available polecat."""
    _, _, swarm = _load(args)
    polecat = swarm.assign_next(args.issue)
    if args.json:
        print(json.dumps(polecat.to_dict(), indent=2))
        return
    print(f"Assigned {args.issue} to polecat {polecat.name}")


def cmd_swarm_release(args):
    _, _, swarm = _load(args)
    polecat = swarm.release(args.name)
    print(f"Released polecat {polecat.name}")


def cmd_swarm_stuck(args):
    _, _, swarm = _load(args)
    polecat = swarm.mark_stuck(args.name)
    print(f"Marked polecat {polecat.name} stuck" + (f" on {polecat.issue}" if polecat.issue else ""))


def cmd_swarm_done(args):
    _, _, swarm = _load(args)
    polecat = swarm.mark_done(args.name)
    print(f"Marked polecat {polecat.name} done" + (f" with {polecat.issue}" if polecat.issue else ""))


def cmd_swarm_status(args):
    """Show counts by state and per-polecat summaries."""
    _, _, swarm = _load(args)
    status = swarm.status()

    if args.json:
        print(json.dumps(status.to_dict(), indent=2))
        return

    print(f"Rig: {status.rig}")
    print(f"Polecats: {status.total} ({status.available} available)")
    counts = ", ".join(f"{state.value}={count}" for state, count in status.counts.items())
    print(f"  {counts}")
    if status.polecats:
        print()
    for summary in status.polecats:
        icon = STATE_ICONS.get(summary.state, "?")
        issue = f"  {summary.issue}" if summary.issue else ""
        print(f"  {icon} {summary.name:<20} {summary.state.value:<8}{issue}")


# ============================================================================
# Version
# ============================================================================

def cmd_version(args):
    """Print version information."""
    if args.short:
        print(f"{VERSION}-{BUILD}")
        return

    print(f"rigswarm version {VERSION} ({BUILD})")
    if args.verbose:
        if COMMIT:
            print(f"Commit: {COMMIT}")
        if BRANCH:
            print(f"Branch: {BRANCH}")
        print(f"Python version: {platform.python_version()}")
        print(f"Timestamp: {datetime.now(timezone.utc).isoformat(timespec='seconds')}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rigswarm",
        description="rigswarm - Manage polecats and coordinate work across a rig",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rigswarm polecat add rex
  rigswarm polecat list
  rigswarm swarm assign ISSUE-7
  rigswarm swarm status --json
  rigswarm swarm release rex
  rigswarm polecat remove rex
        """
    )

    parser.add_argument('--rig', '-r', default='.', help='Rig directory (default: current)')
    parser.add_argument('--verbose', dest='log_verbose', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # polecat
    polecat_parser = subparsers.add_parser('polecat', help='Manage polecats')
    polecat_subparsers = polecat_parser.add_subparsers(dest='polecat_command')

    p_add = polecat_subparsers.add_parser('add', help='Create a polecat with its own clone')
    p_add.add_argument('name', help='Polecat name')
    p_add.set_defaults(func=cmd_polecat_add)

    p_remove = polecat_subparsers.add_parser('remove', help='Remove a polecat and its workspace')
    p_remove.add_argument('name', help='Polecat name')
    p_remove.add_argument('--force', '-f', action='store_true', help='Skip the uncommitted-changes check')
    p_remove.set_defaults(func=cmd_polecat_remove)

    p_list = polecat_subparsers.add_parser('list', help='List polecats')
    p_list.add_argument('--json', action='store_true', help='Output as JSON')
    p_list.set_defaults(func=cmd_polecat_list)

    p_show = polecat_subparsers.add_parser('show', help='Show a polecat')
    p_show.add_argument('name', help='Polecat name')
    p_show.add_argument('--json', action='store_true', help='Output as JSON')
    p_show.set_defaults(func=cmd_polecat_show)

    p_wake = polecat_subparsers.add_parser('wake', help='Move an idle polecat to active')
    p_wake.add_argument('name', help='Polecat name')
    p_wake.set_defaults(func=cmd_polecat_wake)

    p_sleep = polecat_subparsers.add_parser('sleep', help='Move an active polecat to idle')
    p_sleep.add_argument('name', help='Polecat name')
    p_sleep.set_defaults(func=cmd_polecat_sleep)

    p_state = polecat_subparsers.add_parser('state', help='Force a polecat into a state')
    p_state.add_argument('name', help='Polecat name')
    p_state.add_argument('state', choices=[s.value for s in State], help='Target state')
    p_state.set_defaults(func=cmd_polecat_state)

    polecat_parser.set_defaults(func=lambda args: polecat_parser.print_help())

    # swarm
    swarm_parser = subparsers.add_parser('swarm', help='Coordinate work across polecats')
    swarm_subparsers = swarm_parser.add_subparsers(dest='swarm_command')

    s_assign = swarm_subparsers.add_parser('assign', help='Assign an issue to the next available polecat')
    s_assign.add_argument('issue', help='Issue identifier')
    s_assign.add_argument('--json', action='store_true', help='Output as JSON')
    s_assign.set_defaults(func=cmd_swarm_assign)

    s_release = swarm_subparsers.add_parser('release', help='Clear a polecat\'s issue and return it to the pool')
    s_release.add_argument('name', help='Polecat name')
    s_release.set_defaults(func=cmd_swarm_release)

    s_stuck = swarm_subparsers.add_parser('stuck', help='Mark a polecat stuck')
    s_stuck.add_argument('name', help='Polecat name')
    s_stuck.set_defaults(func=cmd_swarm_stuck)

    s_done = swarm_subparsers.add_parser('done', help='Mark a polecat done')
    s_done.add_argument('name', help='Polecat name')
    s_done.set_defaults(func=cmd_swarm_done)

    s_status = swarm_subparsers.add_parser('status', help='Show swarm status')
    s_status.add_argument('--json', action='store_true', help='Output as JSON')
    s_status.set_defaults(func=cmd_swarm_status)

    swarm_parser.set_defaults(func=lambda args: swarm_parser.print_help())

    # version
    version_parser = subparsers.add_parser('version', help='Print version information')
    version_parser.add_argument('--short', '-s', action='store_true', help='Print only <version>-<build>')
    version_parser.add_argument('--verbose', '-v', action='store_true', help='Include build and runtime details')
    version_parser.set_defaults(func=cmd_version)

    return parser


def _configure_logging(args) -> None:
    level = "DEBUG" if args.log_verbose else "WARNING"
    if not args.log_verbose and args.command != 'version':
        level = SwarmConfig.load(Path(args.rig)).log_level

    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        _configure_logging(args)
        args.func(args)
    except RigSwarmError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == '__main__':
    sys.exit(main())
