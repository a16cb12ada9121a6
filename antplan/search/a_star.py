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
Implements the A* (a-star), weighted A* and greedy best first search
algorithms, using preferred operators as tie-breaker.
"""

import heapq
import logging
from typing import Dict, FrozenSet, List, Optional, Tuple

from antplan.search.searchspace import SearchNode
from antplan.task import Operator, State, Task

from . import searchspace
from ..cli import cli_register
from ..heuristics.blind import BlindHeuristic
from ..heuristics.heuristic_base import DEAD_END, Heuristic
from .search import Search


class BestFirstSearch(Search):
    def __init__(self, task: Task, heuristic: type[Heuristic] = BlindHeuristic, use_preferred_ops: bool = True):
        super().__init__(task)
        self.heuristic = heuristic(task)
        self.use_preferred_ops = use_preferred_ops

    def _make_open_entry(self, node: SearchNode, h: int, preferred: bool, node_tiebreaker: int) -> Tuple[int, int, int, int, SearchNode]:
        """
        Creates an ordered search node (basically, a tuple containing the node
        itself and an ordering) for best first search.
        """
        raise NotImplementedError("Base class does not implement this method.")

    def _evaluate(self, node: SearchNode, preferred_of: Dict[State, FrozenSet[int]]):
        h = self.heuristic(node)
        # Cached evaluations report no preferred operators, so an empty set
        # must not replace the ones of an earlier evaluation of the state.
        if self.use_preferred_ops and h != DEAD_END and self.heuristic.preferred_operators:
            preferred_of[node.state] = frozenset(self.heuristic.preferred_operators)
        return h

    def _log_statistics(self, evaluated: int, expansions: int, dead_ends: int, generated: int):
        logging.info(f"Evaluated {evaluated} state(s).")
        logging.info(f"Expanded {expansions} state(s).")
        logging.info(f"Dead ends: {dead_ends} state(s).")
        logging.info(f"Generated {generated} state(s).")
        self.heuristic.log_statistics()

    def search(self) -> Optional[List[Operator]]:
        """
        Searches for a plan in the task.

        Successors reached by an operator that the heuristic preferred in the
        parent state are expanded before other successors with the same
        ordering values.

        @return The solution as a list of operators or None if the task is
                unsolvable.
        """
        open = []
        state_cost = {self.task.initial_state: 0}
        preferred_of: Dict[State, FrozenSet[int]] = {}
        node_tiebreaker = 0

        root = searchspace.make_root_node(self.task.initial_state)
        init_h = self._evaluate(root, preferred_of)
        if init_h != DEAD_END:
            heapq.heappush(open, self._make_open_entry(root, init_h, False, node_tiebreaker))
        logging.info("Initial h value: %f" % init_h)

        besth = float("inf")
        generated = 1
        expansions = 0
        evaluated = 1
        dead_ends = 0

        while open:
            (f, h, _pref, _tie, pop_node) = heapq.heappop(open)
            if h < besth:
                besth = h
                logging.debug("Found new best h: %d after %d expansions" % (besth, expansions))

            pop_state = pop_node.state
            # Only expand the node if its associated cost (g value) is the lowest
            # cost known for this state. Otherwise we already found a cheaper
            # path after creating this node and hence can disregard it.
            if state_cost[pop_state] != pop_node.g:
                continue
            expansions += 1

            if self.task.goal_reached(pop_state):
                logging.info("Goal reached. Start extraction of solution.")
                self._log_statistics(evaluated, expansions, dead_ends, generated)
                return pop_node.extract_solution()

            preferred = preferred_of.pop(pop_state, frozenset())
            for op, succ_state in self.task.get_successor_states(pop_state):
                succ_node = searchspace.make_child_node(pop_node, op, succ_state, self.task)
                old_succ_g = state_cost.get(succ_state, float("inf"))
                if succ_node.g >= old_succ_g:
                    continue

                h = self._evaluate(succ_node, preferred_of)
                evaluated += 1
                if h == DEAD_END:
                    # don't bother with states that can't reach the goal anyway
                    dead_ends += 1
                    continue

                # We either never saw succ_state before, or we found a
                # cheaper path to succ_state than previously.
                node_tiebreaker += 1
                heapq.heappush(open, self._make_open_entry(succ_node, h, op.index in preferred, node_tiebreaker))
                state_cost[succ_state] = succ_node.g
                generated += 1

        logging.info("No operators left. Task unsolvable.")
        self._log_statistics(evaluated, expansions, dead_ends, generated)
        return None


@cli_register("astar")
class AStarSearch(BestFirstSearch):
    def _make_open_entry(self, node: SearchNode, h: int, preferred: bool, node_tiebreaker: int) -> Tuple[int, int, int, int, SearchNode]:
        """
        Creates an ordered search node (basically, a tuple containing the node
        itself and an ordering) for A* search.

        @param node The node itself.
        @param h The heuristic value.
        @param preferred Whether the node was reached by a preferred operator.
        @param node_tiebreaker An increasing value to prefer the value first
                               inserted if the ordering is the same.
        @returns A tuple to be inserted into priority queues.
        """
        f = node.g + h
        return (f, h, 0 if preferred else 1, node_tiebreaker, node)


@cli_register("wastar")
class WeightedAStarSearch(BestFirstSearch):
    def __init__(self, task: Task, weight: int = 5, *args, **kwargs):
        super().__init__(task, *args, **kwargs)
        self.weight = weight

    def _make_open_entry(self, node: SearchNode, h: int, preferred: bool, node_tiebreaker: int) -> Tuple[int, int, int, int, SearchNode]:
        """
        Creates an ordered search node for weighted A* search
        (order: g+weight*h).
        """
        return (
            node.g + self.weight * h,
            h,
            0 if preferred else 1,
            node_tiebreaker,
            node,
        )


@cli_register("gbfs")
class GreedyBestFirstSearch(BestFirstSearch):
    def _make_open_entry(self, node: SearchNode, h: int, preferred: bool, node_tiebreaker: int) -> Tuple[int, int, int, int, SearchNode]:
        """
        Creates an ordered search node for greedy best first search (the value
        with lowest heuristic value is used).
        """
        f = h
        return (f, h, 0 if preferred else 1, node_tiebreaker, node)
