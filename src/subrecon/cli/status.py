"""Status CLI command."""

import argparse

from subrecon.cli.common import make_runtime
from subrecon.commands import run_status


def cmd_status(args: argparse.Namespace) -> int:
    rt = make_runtime(args)
    result = run_status(
        rt.context,
        rt.settings,
        rt.console,
        include_all=args.all,
        fix=args.fix,
        git=args.git,
        long=args.long,
        prefer_delete=args.delete,
        dir_switch=rt.dir_switch,
    )
    if args.fix and not result["healthy"]:
        rt.console.warn("Some repairs failed; run `status` again to see what is left.")
    return 0
