"""
Command-line interface for task-guard.

Watches files and runs plugin tasks on changes, as configured by a
Guardfile in the current directory.
"""

import sys
import logging
import argparse
from pathlib import Path

from task_guard import constants
from task_guard.exceptions import TaskGuardError
from task_guard.models import Options
from task_guard.plugins import default_registry
from task_guard.supervisor import Supervisor
from task_guard.templates import render_guardfile


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(debug: bool = False) -> None:
    """Configure root logging for the CLI."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
    )


def parse_bool(value: str) -> bool:
    """Parse a true/false command-line value."""
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "y", "on"):
        return True
    if text in ("0", "false", "no", "n", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got '{value}'")


def build_options(args) -> Options:
    """Options snapshot from parsed `start` arguments."""
    return Options(
        clear=args.clear,
        notify=args.notify,
        debug=args.debug,
        groups=args.group or (),
        plugins=args.plugin or (),
        watchdirs=args.watchdir or (),
        guardfiles=args.guardfile or (),
        no_interactions=args.no_interactions,
        latency=args.latency,
        force_polling=args.force_polling,
        wait_for_delay=args.wait_for_delay,
    )


def cmd_start(args):
    """Start watching and block until stopped."""
    options = build_options(args)
    setup_logging(options.debug)

    supervisor = Supervisor()
    try:
        supervisor.start(options)
    except TaskGuardError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        supervisor.stop()
    return 0


def cmd_init(args):
    """Write a Guardfile template into the current directory."""
    setup_logging()
    guardfile = Path(args.guardfile or constants.TASK_GUARD_GUARDFILE)
    if guardfile.exists():
        print(f"❌ {guardfile} already exists, not overwriting it", file=sys.stderr)
        return 1

    try:
        content = render_guardfile(default_registry(), args.plugins)
    except TaskGuardError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    guardfile.write_text(content)
    print(f"✅ Wrote {guardfile}")
    for name in args.plugins or default_registry().names():
        print(f"   📁 {name} template added")
    return 0


def _load(args) -> Supervisor:
    return Supervisor().load(Options(guardfiles=args.guardfile or ()))


def cmd_list(args):
    """List plugin types, marking those used in the Guardfile."""
    setup_logging(args.debug)
    registry = default_registry()
    try:
        used = {plugin.name for plugin in _load(args).plugins}
    except TaskGuardError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print("Available plugins:")
    for name in registry.names():
        marker = "✅" if name in used else "  "
        print(f"  {marker} {name}")
    print("\n✅ = in use by the Guardfile")
    return 0


def cmd_show(args):
    """Show the groups and plugins of the evaluated Guardfile."""
    setup_logging(args.debug)
    try:
        supervisor = _load(args)
    except TaskGuardError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print("=" * 60)
    print("📋 Guardfile")
    print("=" * 60)
    for group in supervisor.groups:
        plugins = [p for p in supervisor.plugins if p.group.name == group.name]
        options = f" {group.options}" if group.options else ""
        print(f"\n📁 {group.title}{options}")
        if not plugins:
            print("   (no plugins)")
        for plugin in plugins:
            options = f" {plugin.options}" if plugin.options else ""
            print(f"   {plugin.title}{options}")
            for watcher in plugin.watchers:
                print(f"      watch: {watcher.pattern}")

    if not supervisor.plugins:
        print("\n⚠️  No plugins found in Guardfile")
    return 0


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Task Guard: run tasks when files change",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create a Guardfile with the shell plugin
  task-guard init shell

  # Watch the current directory
  task-guard start

  # Watch src/ and only run the backend group
  task-guard start -w src -g backend

  # Show what the Guardfile declares
  task-guard show
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Start command
    start_parser = subparsers.add_parser("start", help="Start watching files")
    start_parser.add_argument("-c", "--clear", action="store_true",
                              help="Clear the screen before running tasks on changes")
    start_parser.add_argument("-n", "--notify", type=parse_bool, default=True, metavar="BOOL",
                              help="Send notifications (default: true)")
    start_parser.add_argument("-d", "--debug", action="store_true",
                              help="Show debug output, including external commands")
    start_parser.add_argument("-g", "--group", action="append", metavar="GROUP",
                              help="Only run plugins of this group (repeatable)")
    start_parser.add_argument("-P", "--plugin", action="append", metavar="PLUGIN",
                              help="Only run this plugin (repeatable)")
    start_parser.add_argument("-w", "--watchdir", action="append", metavar="DIR",
                              help="Directory to watch (repeatable, default: current directory)")
    start_parser.add_argument("-G", "--guardfile", action="append", metavar="GUARDFILE",
                              help="Guardfile to evaluate instead of the default ones (repeatable)")
    start_parser.add_argument("-i", "--no-interactions", action="store_true",
                              help="Disable the interactive console")
    start_parser.add_argument("-l", "--latency", type=float,
                              help="Listener latency in seconds")
    start_parser.add_argument("-p", "--force-polling", action="store_true",
                              help="Poll the filesystem instead of using native events")
    start_parser.add_argument("-y", "--wait-for-delay", type=float, metavar="SECONDS",
                              help="Quiet period before changes are handled")
    start_parser.set_defaults(func=cmd_start)

    # Init command
    init_parser = subparsers.add_parser("init", help="Write a Guardfile template")
    init_parser.add_argument("plugins", nargs="*", metavar="PLUGIN",
                             help="Plugin templates to add (default: all)")
    init_parser.add_argument("-G", "--guardfile", help="Guardfile path to write")
    init_parser.set_defaults(func=cmd_init)

    # List command
    list_parser = subparsers.add_parser("list", help="List available plugins")
    list_parser.add_argument("-G", "--guardfile", action="append", metavar="GUARDFILE",
                             help="Guardfile to evaluate")
    list_parser.add_argument("-d", "--debug", action="store_true", help="Show debug output")
    list_parser.set_defaults(func=cmd_list)

    # Show command
    show_parser = subparsers.add_parser("show", help="Show groups and plugins in the Guardfile")
    show_parser.add_argument("-G", "--guardfile", action="append", metavar="GUARDFILE",
                             help="Guardfile to evaluate")
    show_parser.add_argument("-d", "--debug", action="store_true", help="Show debug output")
    show_parser.set_defaults(func=cmd_show)

    args = parser.parse_args(argv)

    if hasattr(args, "func"):
        return args.func(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
