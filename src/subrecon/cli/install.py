"""Install CLI command."""

import argparse

from subrecon.cli.common import make_runtime
from subrecon.commands import run_install


def cmd_install(args: argparse.Namespace) -> int:
    rt = make_runtime(args)
    run_install(
        rt.context,
        rt.settings,
        rt.console,
        url=args.url,
        path=args.path,
        branch=args.branch,
        name=args.name,
        depth=args.depth,
        force=args.force,
        no_recursive=args.no_recursive,
        dir_switch=rt.dir_switch,
    )
    return 0
