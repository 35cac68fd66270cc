"""Update CLI command."""

import argparse

from subrecon.cli.common import make_runtime
from subrecon.commands import run_update


def cmd_update(args: argparse.Namespace) -> int:
    rt = make_runtime(args)
    result = run_update(
        rt.context,
        rt.settings,
        rt.console,
        name=args.name,
        branch=args.branch,
        unset_branch=args.unset_branch,
        url=args.url,
        force=args.force,
        bypass=args.bypass,
        dir_switch=rt.dir_switch,
    )
    if result["updated"] == ["*"]:
        rt.console.info("Updated all submodules")
    else:
        rt.console.info(f"Updated submodule `{args.name}`")
    return 0
