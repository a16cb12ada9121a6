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

import logging
from pathlib import Path
import time
from typing import Callable, List, Optional, Union

from antplan.task import Operator, Task

from .sas_reader import open_sas_task
from .search.search import Search


def write_solution(solution: List[Operator], filename: Union[str, Path]):
    assert solution is not None
    with open(filename, "w") as file:
        for op in solution:
            print(op.name, file=file)


def solve(task: Task, search: Callable[[Task], Search]) -> Optional[List[Operator]]:
    """
    Runs the search on an already loaded task and logs the plan cost and
    the time spent.
    """
    search_start_time = time.process_time()
    solution = search(task).search()
    cost = sum(task.get_action_cost(op) for op in solution) if solution is not None else -1
    if solution is not None:
        logging.info(f"Plan length: {len(solution)}")
    logging.info(f"Plan cost: {cost if cost >= 0 else float('inf')}")
    logging.info("Search time: {:.03}s".format(time.process_time() - search_start_time))
    return solution


def search_plan(task_file: Union[str, Path], search: Callable[[Task], Search]) -> Optional[List[Operator]]:
    """
    Reads the given SAS task file and then tries to find a solution using
    the specified search algorithm.

    @param task_file  The path to a translated task (output.sas)
    @param search     A callable that creates a search for the task, e.g. the
                      result of cli_constructor(Search)
    @return A list of operators that solve the task, or None
    """
    total_start_time = time.process_time()
    task = open_sas_task(task_file)
    logging.info("done reading input!")
    solution = solve(task, search)
    logging.info("Total time: {:.03}s".format(time.process_time() - total_start_time))
    return solution
