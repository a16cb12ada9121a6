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
Delete-relaxation heuristics (h_add, h_max, h_FF) over unary operators.

Every ground operator is split into one unary operator per effect. Costs are
propagated forward from a state with a Dijkstra-like exploration, then the
relaxed plan is marked backwards from the goal along the operators that first
reached each proposition at minimal cost.
"""

import heapq
import itertools
import logging
from typing import List, Set, Tuple, Union

from antplan.task import State, Task

from ..cli import cli_register
from .heuristic_base import DEAD_END, Heuristic


# reached_by value of propositions that hold in the evaluated state.
NO_OP = -1

MODES = ("add", "max")


class RelaxedPlanError(RuntimeError):
    """The relaxed plan extraction found an inconsistency, which is a bug."""


class Proposition:
    __slots__ = ("var", "value", "is_goal", "precondition_of", "cost", "marked", "reached_by")

    def __init__(self, var: int, value: int):
        self.var = var
        self.value = value
        self.is_goal = False
        # Unary operators that have this proposition as precondition
        self.precondition_of: List[int] = []
        # Scratch fields, reset by every exploration
        self.cost = -1
        self.marked = False
        self.reached_by = NO_OP

    def __repr__(self):
        return f"<Prop {self.var}={self.value} cost={self.cost}>"


class UnaryOperator:
    __slots__ = ("preconditions", "effect", "base_cost", "operator_no", "cost", "unsatisfied_preconditions")

    def __init__(self, preconditions: List[int], effect: int, base_cost: int, operator_no: int):
        self.preconditions = preconditions
        self.effect = effect
        self.base_cost = base_cost
        self.operator_no = operator_no
        self.cost = base_cost
        self.unsatisfied_preconditions = len(preconditions)

    def __repr__(self):
        return f"<UnaryOp {self.operator_no}: {self.preconditions} -> {self.effect}>"


class RelaxationHeuristic(Heuristic):
    """
    Propagates costs through the delete relaxation of the task.

    mode "add" sums the precondition costs of an operator (h_add), mode "max"
    takes the most expensive one (h_max). The queue is ordered by cost and
    then by insertion order, so equally cheap supporters are chosen
    deterministically.
    """

    def __init__(self, task: Task, mode: str = "add"):
        super().__init__(task)
        if mode not in MODES:
            raise ValueError(f"Unknown propagation mode '{mode}', expected one of {MODES}")
        self.mode = mode
        self.relaxed_plan: Set[int] = set()

        self._offsets = list(itertools.accumulate([0] + [v.domain_size for v in task.variables]))
        self.propositions = [Proposition(var, value) for var, variable in enumerate(task.variables) for value in range(variable.domain_size)]

        self.goal_propositions: List[int] = []
        for var, value in task.goal:
            prop_id = self.get_prop_id(var, value)
            if not self.propositions[prop_id].is_goal:
                self.propositions[prop_id].is_goal = True
                self.goal_propositions.append(prop_id)

        self.unary_operators: List[UnaryOperator] = []
        for op_no, op in enumerate(task.operators):
            for effect in op.effects:
                preconditions = sorted({self.get_prop_id(var, value) for var, value in op.preconditions + effect.conditions})
                effect_id = self.get_prop_id(effect.var, effect.value)
                if effect_id in preconditions:
                    continue
                self.unary_operators.append(UnaryOperator(preconditions, effect_id, op.cost, op_no))

        self._no_precondition_operators = []
        for op_id, unary_op in enumerate(self.unary_operators):
            for precondition in unary_op.preconditions:
                self.propositions[precondition].precondition_of.append(op_id)
            if not unary_op.preconditions:
                self._no_precondition_operators.append(op_id)

        self._queue: List[Tuple[int, int, int]] = []
        self._tiebreaker = itertools.count()
        logging.info(f"Relaxation: {len(self.propositions)} propositions, {len(self.unary_operators)} unary operators, mode {self.mode}")

    def get_prop_id(self, var: int, value: int) -> int:
        return self._offsets[var] + value

    # Forward propagation

    def _enqueue_if_necessary(self, prop_id: int, cost: int, op_id: int):
        prop = self.propositions[prop_id]
        if prop.cost == -1 or prop.cost > cost:
            prop.cost = cost
            prop.reached_by = op_id
            heapq.heappush(self._queue, (cost, next(self._tiebreaker), prop_id))

    def _setup_exploration_queue(self, state: State):
        self._queue = []
        self._tiebreaker = itertools.count()
        for prop in self.propositions:
            prop.cost = -1
            prop.marked = False
            prop.reached_by = NO_OP
        for unary_op in self.unary_operators:
            unary_op.unsatisfied_preconditions = len(unary_op.preconditions)
            unary_op.cost = unary_op.base_cost

        for var, value in enumerate(state):
            self._enqueue_if_necessary(self.get_prop_id(var, value), 0, NO_OP)
        for op_id in self._no_precondition_operators:
            unary_op = self.unary_operators[op_id]
            self._enqueue_if_necessary(unary_op.effect, unary_op.base_cost, op_id)

    def _relaxed_exploration(self):
        unsolved_goals = len(self.goal_propositions)
        additive = self.mode == "add"
        while self._queue and unsolved_goals:
            cost, _, prop_id = heapq.heappop(self._queue)
            prop = self.propositions[prop_id]
            if prop.cost < cost:
                continue
            if prop.is_goal:
                unsolved_goals -= 1
            for op_id in prop.precondition_of:
                unary_op = self.unary_operators[op_id]
                if additive:
                    unary_op.cost += cost
                else:
                    unary_op.cost = max(unary_op.cost, unary_op.base_cost + cost)
                unary_op.unsatisfied_preconditions -= 1
                assert unary_op.unsatisfied_preconditions >= 0
                if unary_op.unsatisfied_preconditions == 0:
                    self._enqueue_if_necessary(unary_op.effect, unary_op.cost, op_id)

    def propagate(self, state: State) -> bool:
        """
        Computes the cost of every proposition reachable from "state".

        @return True if every goal proposition was reached, False if the state
                is a dead end of the relaxed task
        """
        self._setup_exploration_queue(state)
        self._relaxed_exploration()
        return all(self.propositions[goal_id].cost != -1 for goal_id in self.goal_propositions)

    def goal_cost(self) -> int:
        costs = [self.propositions[goal_id].cost for goal_id in self.goal_propositions]
        if self.mode == "add":
            return sum(costs)
        return max(costs, default=0)

    # Backward extraction

    def extract(self, state: State) -> Tuple[Set[int], Set[int]]:
        """
        Marks the relaxed plan backwards from the goal propositions. Must be
        called after propagate(state).

        @return (relaxed plan, preferred operators) as sets of operator indices
        """
        for prop in self.propositions:
            prop.marked = False
        relaxed_plan: Set[int] = set()
        preferred: Set[int] = set()
        for goal_id in self.goal_propositions:
            self._mark_relaxed_plan(state, goal_id, relaxed_plan, preferred)
        return relaxed_plan, preferred

    def _mark_relaxed_plan(self, state: State, goal_id: int, relaxed_plan: Set[int], preferred: Set[int]):
        goal = self.propositions[goal_id]
        if goal.marked:
            return
        goal.marked = True
        if goal.reached_by == NO_OP:
            return

        # Frames are [proposition, supporter, remaining preconditions, preferred so far]
        stack = [[goal_id, goal.reached_by, iter(self.unary_operators[goal.reached_by].preconditions), True]]
        on_stack = {goal_id}
        while stack:
            frame = stack[-1]
            descended = False
            for precondition_id in frame[2]:
                precondition = self.propositions[precondition_id]
                if precondition_id in on_stack:
                    raise RelaxedPlanError(f"Cyclic supporters at proposition {precondition}")
                if precondition.reached_by != NO_OP:
                    frame[3] = False
                if not precondition.marked:
                    precondition.marked = True
                    if precondition.reached_by != NO_OP:
                        supporter = self.unary_operators[precondition.reached_by]
                        stack.append([precondition_id, precondition.reached_by, iter(supporter.preconditions), True])
                        on_stack.add(precondition_id)
                        descended = True
                        break
            if descended:
                continue
            prop_id, op_id, _, is_preferred = stack.pop()
            on_stack.discard(prop_id)
            self._add_to_relaxed_plan(state, op_id, is_preferred, relaxed_plan, preferred)

    def _add_to_relaxed_plan(self, state: State, op_id: int, is_preferred: bool, relaxed_plan: Set[int], preferred: Set[int]):
        operator_no = self.unary_operators[op_id].operator_no
        if operator_no == -1:
            return
        relaxed_plan.add(operator_no)
        if is_preferred:
            op = self.task.operators[operator_no]
            if not op.applicable(state):
                raise RelaxedPlanError(f"Preferred operator {op.name} is not applicable in {state}")
            preferred.add(operator_no)

    def compute(self, state: State) -> Union[int, float]:
        self.relaxed_plan = set()
        self.preferred_operators = set()
        if not self.propagate(state):
            return DEAD_END
        self.relaxed_plan, self.preferred_operators = self.extract(state)
        return self.goal_cost()


@cli_register("hadd")
class hAddHeuristic(RelaxationHeuristic):
    """
    Additive heuristic: the cost of a set of propositions is the sum of their
    costs.
    """

    def __init__(self, task: Task):
        super().__init__(task, mode="add")


@cli_register("hmax")
class hMaxHeuristic(RelaxationHeuristic):
    """
    Max heuristic: the cost of a set of propositions is the cost of the most
    expensive one. Admissible, unlike the other relaxation heuristics here.
    """

    def __init__(self, task: Task):
        super().__init__(task, mode="max")


@cli_register("hff")
class hFFHeuristic(RelaxationHeuristic):
    """
    FF heuristic: the cost of the relaxed plan extracted from the additive
    propagation.
    """

    def __init__(self, task: Task):
        super().__init__(task, mode="add")

    def compute(self, state: State) -> Union[int, float]:
        h = super().compute(state)
        if h == DEAD_END:
            return h
        return sum(self.task.operators[operator_no].cost for operator_no in self.relaxed_plan)
