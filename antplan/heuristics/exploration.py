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
from typing import List, Optional, Set, Tuple

from antplan.task import Operator, State, Task

from .cache import fingerprint
from .oracle import OracleBridge, make_snapshot


class LookaheadExplorer:
    """
    Probes successors of an evaluated state with the oracle and marks the
    operators leading to clearly better successors as preferred.

    A successor counts as better if its score is below
    current_cost * improvement_threshold. The best max_preferred of them are
    marked, the best max_recursive are probed further with one level less of
    depth. All probing of one call shares a budget of oracle evaluations.

    Successors found below the first level are credited to the operator
    applied in the evaluated state, so every marked operator is applicable
    there.
    """

    def __init__(
        self,
        task: Task,
        bridge: OracleBridge,
        frequency: int = 0,
        depth: int = 2,
        budget: int = 20,
        improvement_threshold: float = 0.9,
        max_preferred: int = 3,
        max_recursive: int = 2,
        adapt_interval: int = 10000,
        history_size: int = 10000,
    ):
        self.task = task
        self.bridge = bridge
        self.frequency = frequency
        self.depth = depth
        self.budget = budget
        self.improvement_threshold = improvement_threshold
        self.max_preferred = max_preferred
        self.max_recursive = max_recursive
        self.adapt_interval = adapt_interval
        self.history_size = history_size
        self.explored: Set[int] = set()
        self._next_exploration = frequency
        self.explorations = 0
        self.evaluations = 0

    def effective_frequency(self, calls: int) -> int:
        """Explore less often the longer the search runs."""
        return self.frequency * (1 + calls // self.adapt_interval)

    def should_explore(self, calls: int) -> bool:
        if self.frequency <= 0 or calls < self._next_exploration:
            return False
        self._next_exploration = calls + self.effective_frequency(calls)
        return True

    def _remember(self, key: int):
        if len(self.explored) >= self.history_size:
            self.explored.clear()
        self.explored.add(key)

    def explore(self, state: State, current_cost: float, preferred: Set[int]):
        if current_cost <= 0 or not self.bridge.ensure_ready():
            return
        self.explorations += 1
        self._probe(state, current_cost, self.depth, self.budget, None, preferred)

    def _probe(self, state: State, current_cost: float, depth: int, budget: int, root_op: Optional[Operator], preferred: Set[int]) -> int:
        """@return the remaining budget"""
        if depth <= 0 or budget <= 0:
            return budget

        candidates: List[Tuple[float, int, Operator, State]] = []
        for op, succ_state in self.task.get_successor_states(state):
            if budget <= 0:
                break
            key = fingerprint(succ_state)
            if key in self.explored:
                continue
            self._remember(key)
            budget -= 1
            self.evaluations += 1
            score = self.bridge.evaluate(make_snapshot(self.task, succ_state))
            if score is None:
                continue
            if score < current_cost * self.improvement_threshold:
                candidates.append((score, len(candidates), op, succ_state))

        candidates.sort(key=lambda c: (c[0], c[1]))
        for score, _, op, _ in candidates[: self.max_preferred]:
            marked = root_op if root_op is not None else op
            if marked.index not in preferred:
                logging.debug(f"Exploration prefers {marked.name} (successor score {score})")
            preferred.add(marked.index)
        for score, _, op, succ_state in candidates[: self.max_recursive]:
            budget = self._probe(succ_state, score, depth - 1, budget, root_op if root_op is not None else op, preferred)
        return budget
