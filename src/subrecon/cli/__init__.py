"""Command line interface for subrecon.

Usage:
    subrecon status [--all] [--fix] [--git] [--long] [--delete]
    subrecon install [<url> [<path>]] [--branch B] [--name N] [--depth D] [--force] [--no-recursive]
    subrecon update [<name>] [--branch B | --unset-branch] [--url U] [--force] [--bypass]
    subrecon remove <name> [--force] [--force-deinit]

Global options:
    --dir/-C DIR, --verbose, --quiet, --config FILE
"""

import argparse
import sys

from subrecon.cli.install import cmd_install
from subrecon.cli.remove import cmd_remove
from subrecon.cli.status import cmd_status
from subrecon.cli.update import cmd_update
from subrecon.console import Console
from subrecon.errors import NeedFixError, SubreconError
from subrecon.paths import working_dir


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subrecon",
        description="Keep git submodules consistent across .gitmodules, .git/config, "
        ".git/modules and the index",
    )
    parser.add_argument(
        "--dir", "-C", default=str(working_dir()),
        help="Run in this directory (default: $SUBRECON_DIR or the current directory)",
    )
    parser.add_argument("--verbose", action="store_true", help="Print every git command")
    parser.add_argument("--quiet", action="store_true", help="Only print warnings and errors")
    parser.add_argument(
        "--config", default=None,
        help="Settings file (default: $SUBRECON_CONFIG or ~/.config/subrecon/config.yaml)",
    )
    sub = parser.add_subparsers(dest="command")

    # status
    st = sub.add_parser("status", help="Show or fix the state of the submodules")
    st.add_argument("--all", "-a", action="store_true",
                    help="Include modules only in .git/modules and unnamed index entries")
    st.add_argument("--fix", "-f", action="store_true", help="Repair inconsistent submodules")
    st.add_argument("--git", action="store_true", help="Show the supported git versions")
    st.add_argument("--long", "-l", action="store_true", help="Show details and hints")
    st.add_argument("--delete", action="store_true",
                    help="With --fix, delete submodules with residue instead of de-initializing")

    # install
    ins = sub.add_parser("install", help="Install all submodules, or add a new one")
    ins.add_argument("url", nargs="?", default=None)
    ins.add_argument("path", nargs="?", default=None)
    ins.add_argument("--branch", default=None)
    ins.add_argument("--name", default=None)
    ins.add_argument("--depth", type=_positive_int, default=None)
    ins.add_argument("--force", action="store_true")
    ins.add_argument("--no-recursive", action="store_true")

    # update
    upd = sub.add_parser("update", help="Update submodules from their remote branch")
    upd.add_argument("name", nargs="?", default=None)
    branch = upd.add_mutually_exclusive_group()
    branch.add_argument("--branch", default=None)
    branch.add_argument("--unset-branch", action="store_true")
    upd.add_argument("--url", default=None)
    upd.add_argument("--force", action="store_true")
    upd.add_argument("--bypass", action="store_true",
                     help="Skip the consistency check before updating")

    # remove
    rm = sub.add_parser("remove", help="Remove a submodule from every store")
    rm.add_argument("name")
    rm.add_argument("--force", action="store_true",
                    help="Remove even if the submodule is inconsistent or fails to deinit")
    rm.add_argument("--force-deinit", action="store_true",
                    help="Pass --force to `git submodule deinit`")

    return parser


def _report_fatal(error: Exception, console: Console | None = None) -> None:
    console = console or Console()
    console.fatal(f"subrecon: fatal: {error}")
    hint = getattr(error, "hint", None)
    if hint:
        console.fatal(f"  hint: {hint}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    dispatch = {
        "status": cmd_status,
        "install": cmd_install,
        "update": cmd_update,
        "remove": cmd_remove,
    }

    try:
        return dispatch[args.command](args)
    except NeedFixError as e:
        if not e.fatal:
            return 1
        _report_fatal(e)
        return 2
    except (SubreconError, ValueError) as e:
        _report_fatal(e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
