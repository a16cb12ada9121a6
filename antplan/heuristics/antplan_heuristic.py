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
from typing import Any, Callable, Optional, Union

from antplan.task import State, Task

from ..cli import cli_register
from .cache import ResultCache
from .exploration import LookaheadExplorer
from .heuristic_base import DEAD_END
from .oracle import DEFAULT_FUNCTION, ModuleOracle, Oracle, OracleBridge, make_snapshot
from .relaxation import RelaxationHeuristic


COMBINATIONS = ("replace", "add", "max")


@cli_register("hantplan")
class AntPlanHeuristic(RelaxationHeuristic):
    """
    Anticipatory cost heuristic.

    Runs the delete relaxation to detect dead ends and to find preferred
    operators, then asks an oracle for the cost of the state and combines both
    values:

        replace: the oracle's value (default)
        add:     relaxation value + oracle value
        max:     the larger of the two

    The oracle is either passed in directly ("oracle", any callable taking the
    state snapshot) or loaded from "module" and "function". Without an oracle
    the relaxation value is returned.

    With include_structural the snapshot given to the oracle also contains the
    relaxation value under the key "h_add" or "h_max", depending on "mode".

    Every exploration_frequency-th call additionally probes successors with
    the oracle (see LookaheadExplorer); 0 disables probing.
    """

    def __init__(
        self,
        task: Task,
        module: Optional[str] = None,
        function: str = DEFAULT_FUNCTION,
        oracle: Optional[Union[Oracle, Callable[[dict], Any]]] = None,
        mode: str = "add",
        combine: str = "replace",
        include_structural: bool = False,
        fallback: Union[int, float] = 0,
        require_oracle: bool = True,
        cache: bool = True,
        cache_max_entries: int = 500000,
        exploration_frequency: int = 0,
        exploration_depth: int = 2,
        exploration_budget: int = 20,
        improvement_threshold: float = 0.9,
        debug: bool = False,
        log_states: bool = False,
    ):
        super().__init__(task, mode)
        if combine not in COMBINATIONS:
            raise ValueError(f"Unknown combination '{combine}', expected one of {COMBINATIONS}")
        if oracle is None and module:
            oracle = ModuleOracle(module, function)
        self.combine = combine
        self.include_structural = include_structural
        self.log_states = log_states
        self.bridge = OracleBridge(oracle, fallback=fallback, require_oracle=require_oracle, debug=debug)
        self.cache = ResultCache(cache_max_entries) if cache else None
        self.explorer = LookaheadExplorer(
            task,
            self.bridge,
            frequency=exploration_frequency,
            depth=exploration_depth,
            budget=exploration_budget,
            improvement_threshold=improvement_threshold,
        )
        self.calls = 0
        logging.info(f"AntPlan heuristic: oracle={oracle if oracle is not None else '<none>'} mode={mode} combine={combine} cache={cache}")

    def _combine(self, structural: int, oracle_value: Union[int, float]) -> Union[int, float]:
        if self.combine == "add":
            return structural + oracle_value
        if self.combine == "max":
            return max(structural, oracle_value)
        return oracle_value

    def _log_state(self, state: State, h: Union[int, float]):
        logging.info("State facts:")
        for name, value in self.task.snapshot(state).items():
            logging.info(f"  {name} = {value}")
        logging.info(f"h = {h}")

    def compute(self, state: State) -> Union[int, float]:
        self.calls += 1
        if self.cache is not None:
            cached = self.cache.get(state)
            if cached is not None:
                self.relaxed_plan = set()
                self.preferred_operators = set()
                return cached

        use_oracle = self.bridge.ensure_ready()
        structural = super().compute(state)
        if structural == DEAD_END:
            h = DEAD_END
        elif use_oracle:
            auxiliary = {f"h_{self.mode}": structural} if self.include_structural else {}
            oracle_value = self.bridge.score(make_snapshot(self.task, state, **auxiliary))
            h = self._combine(structural, oracle_value)
            if self.explorer.should_explore(self.calls):
                self.explorer.explore(state, oracle_value, self.preferred_operators)
        else:
            h = structural

        if self.log_states:
            self._log_state(state, h)
        if self.cache is not None:
            self.cache.put(state, h)
        return h

    def log_statistics(self):
        logging.info(f"Heuristic calls: {self.calls}")
        if self.cache is not None:
            logging.info(f"Cache hits: {self.cache.hits}, misses: {self.cache.misses}, evictions: {self.cache.evictions}")
        logging.info(f"Oracle calls: {self.bridge.calls}, failures: {self.bridge.failures}")
        if self.explorer.frequency > 0:
            logging.info(f"Explorations: {self.explorer.explorations}, oracle evaluations: {self.explorer.evaluations}")
