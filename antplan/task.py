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
Classes for representing a finite-domain (SAS+) planning task
"""
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

# A state assigns one value index to every variable.
State = Tuple[int, ...]
Fact = Tuple[int, int]


def pretty_name(name: str) -> str:
    return name.replace("NegatedAtom ", "~").replace("Atom ", "").replace("()", "")


class Variable:
    """
    A finite-domain variable. values holds one human readable name per value,
    the position in the list is the value index used in states.
    """

    def __init__(self, name: str, values: Sequence[str]):
        self.name = name
        self.values = list(values)

    @property
    def domain_size(self) -> int:
        return len(self.values)

    def __repr__(self):
        return f"<Variable {self.name}: {'|'.join(self.values)}>"


class Effect:
    """
    Sets var to value. The effect only fires if all of its conditions hold in
    the state the operator is applied to.
    """

    def __init__(self, var: int, value: int, conditions: Iterable[Fact] = ()):
        self.var = var
        self.value = value
        self.conditions = tuple(conditions)

    def fires(self, state: State) -> bool:
        return all(state[var] == value for var, value in self.conditions)

    def __eq__(self, other):
        return self.var == other.var and self.value == other.value and self.conditions == other.conditions

    def __hash__(self):
        return hash((self.var, self.value, self.conditions))

    def __repr__(self):
        if self.conditions:
            return f"<Effect {self.conditions} -> {self.var}={self.value}>"
        return f"<Effect {self.var}={self.value}>"


class Operator:
    """
    The preconditions are the facts (var, value) that have to be true
    before the operator can be applied.
    effects are the assignments made by the operator. There are no delete
    effects: assigning a new value implicitly removes the old one.
    """

    def __init__(self, name: str, preconditions: Iterable[Fact], effects: Iterable[Effect], cost: int = 1):
        self.name = name
        self.preconditions = tuple(sorted(set(preconditions)))
        self.effects = tuple(effects)
        if cost < 0:
            raise ValueError(f"Operator {name} has negative cost {cost}")
        self.cost = cost
        # Position in Task.operators, assigned by the task.
        self.index = -1

    def applicable(self, state: State) -> bool:
        """
        Operators are applicable when every precondition fact holds in "state".

        @return True if all preconditions are satisfied, False otherwise
        """
        return all(state[var] == value for var, value in self.preconditions)

    def apply(self, state: State) -> State:
        """
        Applying an operator means setting every variable of a firing effect
        to its new value. Effect conditions are evaluated in the original
        state, so effects do not see each other.

        @param state The state that the operator should be applied to
        @return A new state after the application of the operator
        """
        assert self.applicable(state)
        values = list(state)
        for effect in self.effects:
            if effect.fires(state):
                values[effect.var] = effect.value
        return tuple(values)

    def __eq__(self, other):
        return self.name == other.name and self.preconditions == other.preconditions and self.effects == other.effects and self.cost == other.cost

    def __hash__(self) -> int:
        return hash((self.name, self.preconditions, self.effects, self.cost))

    def __str__(self):
        s = "%s\n" % self.name
        for var, value in self.preconditions:
            s += f"  PRE: {var}={value}\n"
        for effect in self.effects:
            s += f"  EFF: {effect}\n"
        s += f"  COST: {self.cost}\n"
        return s

    def __repr__(self):
        return "<Op %s>" % self.name


class Task:
    """
    A finite-domain planning task
    """

    def __init__(self, name: str, variables: List[Variable], initial_state: Sequence[int], goal: Iterable[Fact], operators: List[Operator]):
        """
        @param name The task's name
        @param variables The task's variables with their value names
        @param initial_state One value index per variable
        @param goal A list of (var, value) facts that must hold to solve the problem
        @param operators A list of operator instances for the domain
        """
        self.name = name
        self.variables = variables
        self.initial_state: State = tuple(initial_state)
        self.goal: List[Fact] = list(goal)
        self.operators = operators
        for i, op in enumerate(self.operators):
            op.index = i
        self.validate()

    def validate(self):
        if len(self.initial_state) != len(self.variables):
            raise ValueError(f"Initial state has {len(self.initial_state)} values for {len(self.variables)} variables")
        for var, value in enumerate(self.initial_state):
            self._check_fact(var, value, "initial state")
        for var, value in self.goal:
            self._check_fact(var, value, "goal")
        for op in self.operators:
            for var, value in op.preconditions:
                self._check_fact(var, value, op.name)
            for effect in op.effects:
                self._check_fact(effect.var, effect.value, op.name)
                for var, value in effect.conditions:
                    self._check_fact(var, value, op.name)

    def _check_fact(self, var: int, value: int, where: str):
        if not 0 <= var < len(self.variables):
            raise ValueError(f"Unknown variable {var} in {where}")
        if not 0 <= value < self.variables[var].domain_size:
            raise ValueError(f"Value {value} out of range for variable {self.variables[var].name} in {where}")

    def goal_reached(self, state: State) -> bool:
        """
        The goal has been reached if all goal facts hold in "state".

        @return True if all the goals are reached, False otherwise
        """
        return all(state[var] == value for var, value in self.goal)

    def get_applicable_operators(self, state: State) -> List[Operator]:
        return [op for op in self.operators if op.applicable(state)]

    def get_successor_states(self, state: State) -> List[Tuple[Operator, State]]:
        """
        @return A list with (op, new_state) pairs where "op" is the applicable
        operator and "new_state" the state that results when "op" is applied
        in state "state".
        """
        return [(op, op.apply(state)) for op in self.operators if op.applicable(state)]

    def get_action_cost(self, op: Operator) -> int:
        return op.cost

    def fact_name(self, var: int, value: int) -> str:
        return self.variables[var].values[value]

    def snapshot(self, state: State) -> Dict[str, str]:
        """
        Maps every variable name to the name of its value in "state",
        in variable order.
        """
        return {variable.name: variable.values[value] for variable, value in zip(self.variables, state)}

    def find_operator(self, name: str) -> Optional[Operator]:
        for op in self.operators:
            if op.name == name:
                return op
        return None

    def __str__(self):
        s = "Task {0}\n  Vars:  {1}\n  Init:  {2}\n  Goals: {3}\n  Ops:   {4}"
        return s.format(
            self.name,
            ", ".join(v.name for v in self.variables),
            self.initial_state,
            self.goal,
            "\n".join(map(repr, self.operators)),
        )

    def __repr__(self):
        string = "<Task {0}, vars: {1}, operators: {2}>"
        return string.format(self.name, len(self.variables), len(self.operators))
