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

"""
Implements the search space: nodes that remember how a state was reached.
"""
from typing import List, Optional

from antplan.task import Operator, State, Task


class SearchNode:
    """
    The SearchNode class implements recursive data structure to build a
    search space for planning algorithms. Each node links to is parent
    node and contains informations about the state, action to arrive
    the node and the path length in the count of applied operators.
    """

    def __init__(self, state: State, parent: Optional["SearchNode"], action: Optional[Operator], g: int):
        """
        Construct a search node

        @param state: The state to store in this node.
        @param parent: The parent node in the search space.
        @param action: The action which produced the state.
        @param g: The path cost of this node.
        """
        self.state = state
        self.parent = parent
        self.action = action
        self.g = g

    def extract_solution(self) -> List[Operator]:
        """
        Returns the list of actions that were applied from the initial node to
        the goal node.
        """
        solution = []
        node = self
        while node.parent is not None:
            solution.append(node.action)
            node = node.parent
        solution.reverse()
        return solution


def make_root_node(initial_state: State) -> SearchNode:
    """
    Construct an initial search node. The root node of the search space
    does not have a parent node, an action and the cost is 0.
    """
    return SearchNode(initial_state, None, None, 0)


def make_child_node(parent_node: SearchNode, action: Operator, state: State, task: Task) -> SearchNode:
    """
    Construct a new search node containing the state and the applied action.
    The node is linked to the given parent node and its g value is the
    parent's g value plus the action cost.
    """
    return SearchNode(state, parent_node, action, parent_node.g + task.get_action_cost(action))
