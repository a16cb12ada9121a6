#! /usr/bin/env python3
#
# This file is part of antplan.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>
#

import argparse
import logging
from pathlib import Path
import sys

# These imports look unused, but are not. Module discovery registers all searches and heuristics.
import antplan.cli # isort: skip
import antplan.module_discovery # isort: skip

from antplan.cli import cli_constructor, registered_names
from antplan.heuristics.heuristic_base import Heuristic
from antplan.planner import search_plan, write_solution
from antplan.search.search import Search


def no_traceback_memoryerror(exc_type, exc_value, exc_tb):
    if exc_type is MemoryError:
        print("Memory limit reached.")
    else:
        sys.__excepthook__(exc_type, exc_value, exc_tb)

sys.excepthook = no_traceback_memoryerror


def main(argv=None):
    # Commandline parsing
    log_levels = ["debug", "info", "warning", "error"]

    argparser = argparse.ArgumentParser(
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        epilog=f"Searches: {', '.join(registered_names(Search))}. Heuristics: {', '.join(registered_names(Heuristic))}.",
    )
    argparser.add_argument(dest="task", type=Path, help="Translated task file (output.sas)")
    argparser.add_argument(
        "--plan-file",
        type=Path,
        help="File path for the plan",
        default=None,
    )
    argparser.add_argument("-l", "--loglevel", choices=log_levels, default="info")
    argparser.add_argument(
        "-s",
        "--search",
        type=cli_constructor(Search, allow_none=False),
        help="Search expression, e.g. \"gbfs(heuristic=hantplan(module='antplan.oracles.examples', include_structural=True))\"",
        default="gbfs(heuristic=hff)",
    )
    args = argparser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.loglevel.upper()),
        format="%(relativeCreated)dms %(levelname)-8s %(message)s",
        stream=sys.stdout,
    )

    logging.info(f"Search: {args.search}")
    solution = search_plan(args.task.absolute(), args.search)

    if solution is None:
        logging.warning("No solution could be found")
        return 1
    logging.info("Plan length: %s" % len(solution))
    if args.plan_file:
        write_solution(solution, args.plan_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
