"""Remove CLI command."""

import argparse

from subrecon.cli.common import make_runtime
from subrecon.commands import run_remove


def cmd_remove(args: argparse.Namespace) -> int:
    rt = make_runtime(args)
    run_remove(
        rt.context,
        rt.settings,
        rt.console,
        name=args.name,
        force=args.force,
        force_deinit=args.force_deinit,
        dir_switch=rt.dir_switch,
    )
    return 0
