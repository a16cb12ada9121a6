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

from antplan.task import State, Task

from ..cli import cli_register
from .heuristic_base import Heuristic


@cli_register("hblind")
class BlindHeuristic(Heuristic):
    """
    Returns 0 in goal states and the cheapest operator cost otherwise.
    Never prefers any operator.
    """

    def __init__(self, task: Task):
        super().__init__(task)
        self.min_cost = min((op.cost for op in task.operators), default=0)

    def compute(self, state: State) -> int:
        return 0 if self.task.goal_reached(state) else self.min_cost
