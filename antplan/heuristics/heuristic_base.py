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

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Set, Union

if TYPE_CHECKING:
    from antplan.search.searchspace import SearchNode
    from antplan.task import State, Task


# Value returned for states from which the goal is unreachable.
DEAD_END = float("inf")


class Heuristic(ABC):
    """
    Base class for heuristics. compute() returns the estimated cost to the goal
    and refills preferred_operators with the indices of operators the search
    should try first from the evaluated state.
    """

    def __init__(self, task: "Task"):
        self.task = task
        self.preferred_operators: Set[int] = set()

    @abstractmethod
    def compute(self, state: "State") -> Union[int, float]:
        pass

    def __call__(self, node: "SearchNode") -> Union[int, float]:
        return self.compute(node.state)

    def log_statistics(self):
        pass
