import logging
import math

import pytest

from antplan.cli import cli_constructor
from antplan.conftest import make_light_switch_task
from antplan.heuristics.antplan_heuristic import AntPlanHeuristic
from antplan.heuristics.heuristic_base import DEAD_END, Heuristic
from antplan.heuristics.oracle import OracleConfigurationError


class CountingOracle:
    def __init__(self, value=4):
        self.value = value
        self.calls = 0
        self.snapshots = []

    def __call__(self, snapshot):
        self.calls += 1
        self.snapshots.append(dict(snapshot))
        return self.value


def test_light_switch_without_oracle(light_switch_task, op_index):
    h = AntPlanHeuristic(light_switch_task)
    turn_on = op_index(light_switch_task, "turn_on")
    assert h.compute((0,)) == 1
    assert h.relaxed_plan == {turn_on}
    assert h.preferred_operators == {turn_on}
    assert h.compute((1,)) == 0
    assert h.relaxed_plan == set()


def test_second_call_is_served_from_cache(gripper_task):
    oracle = CountingOracle()
    h = AntPlanHeuristic(gripper_task, oracle=oracle)
    first = h.compute((0, 0))
    second = h.compute((0, 0))
    assert first == second == 4
    assert oracle.calls == 1
    assert h.cache.hits == 1
    assert h.preferred_operators == set()


def test_without_cache_the_oracle_is_asked_again(gripper_task):
    oracle = CountingOracle()
    h = AntPlanHeuristic(gripper_task, oracle=oracle, cache=False)
    h.compute((0, 0))
    h.compute((0, 0))
    assert oracle.calls == 2
    assert h.cache is None


def test_failing_oracle_does_not_stop_evaluation(gripper_task):
    def broken(snapshot):
        raise ValueError("oracle crashed")

    h = AntPlanHeuristic(gripper_task, oracle=broken)
    value = h.compute((0, 0))
    assert isinstance(value, int)
    assert math.isfinite(value) and value >= 0
    assert h.bridge.failures == 1


def test_dead_end_regardless_of_oracle():
    oracle = CountingOracle(value=5)
    h = AntPlanHeuristic(make_light_switch_task(with_operator=False), oracle=oracle)
    assert h.compute((0,)) == DEAD_END
    assert oracle.calls == 0
    assert AntPlanHeuristic(make_light_switch_task(with_operator=False)).compute((0,)) == DEAD_END


@pytest.mark.parametrize("combine, expected", [("replace", 4), ("add", 7), ("max", 4)])
def test_combination(gripper_task, combine, expected):
    h = AntPlanHeuristic(gripper_task, oracle=CountingOracle(4), combine=combine)
    assert h.compute((0, 0)) == expected


def test_max_combination_keeps_larger_structural_value(gripper_task):
    h = AntPlanHeuristic(gripper_task, oracle=CountingOracle(1), combine="max")
    assert h.compute((0, 0)) == 3


def test_unknown_combination(gripper_task):
    with pytest.raises(ValueError):
        AntPlanHeuristic(gripper_task, combine="min")


@pytest.mark.parametrize("mode, key, value", [("add", "h_add", 3), ("max", "h_max", 2)])
def test_structural_value_in_snapshot(gripper_task, mode, key, value):
    oracle = CountingOracle()
    h = AntPlanHeuristic(gripper_task, oracle=oracle, mode=mode, include_structural=True)
    h.compute((0, 0))
    assert oracle.snapshots == [{"robot": "A", "ball": "A", key: value}]


def test_snapshot_without_structural_value(gripper_task):
    oracle = CountingOracle()
    AntPlanHeuristic(gripper_task, oracle=oracle).compute((1, 2))
    assert oracle.snapshots == [{"robot": "B", "ball": "held"}]


def test_oracle_module_from_options(gripper_task):
    h = AntPlanHeuristic(gripper_task, module="antplan.oracles.examples", include_structural=True)
    assert h.compute((0, 0)) == 3


def test_missing_oracle_module_is_fatal(gripper_task):
    h = AntPlanHeuristic(gripper_task, module="antplan.no_such_module")
    with pytest.raises(OracleConfigurationError, match="antplan.no_such_module"):
        h.compute((0, 0))


def test_missing_oracle_module_falls_back_to_structural(gripper_task):
    h = AntPlanHeuristic(gripper_task, module="antplan.no_such_module", require_oracle=False)
    assert h.compute((0, 0)) == 3
    assert h.compute((1, 2)) == 1


def test_preferred_operators_stay_applicable(gripper_task):
    h = AntPlanHeuristic(gripper_task, oracle=CountingOracle(10), exploration_frequency=1, improvement_threshold=2.0)
    for state in [(0, 0), (1, 0), (0, 2), (1, 2)]:
        h.compute(state)
        for index in h.preferred_operators:
            assert gripper_task.operators[index].applicable(state)


def test_exploration_adds_preferred_operators(gripper_task, op_index):
    scores = {("A", "held"): 10, ("B", "held"): 9, ("A", "A"): 1}
    oracle = lambda snapshot: scores.get((snapshot["robot"], snapshot["ball"]), 10)
    move_a_b = op_index(gripper_task, "move_A_B")
    drop_a = op_index(gripper_task, "drop_A")

    h = AntPlanHeuristic(gripper_task, oracle=oracle, improvement_threshold=0.5)
    h.compute((0, 2))
    assert h.preferred_operators == {move_a_b}

    h = AntPlanHeuristic(gripper_task, oracle=oracle, exploration_frequency=1, improvement_threshold=0.5)
    h.compute((0, 2))
    assert h.preferred_operators == {move_a_b, drop_a}
    assert h.explorer.explorations == 1


def test_states_are_logged(gripper_task, caplog):
    h = AntPlanHeuristic(gripper_task, log_states=True)
    with caplog.at_level(logging.INFO):
        h.compute((0, 2))
    messages = [r.getMessage() for r in caplog.records]
    assert "  robot = A" in messages
    assert "  ball = held" in messages


def test_statistics_are_logged(gripper_task, caplog):
    h = AntPlanHeuristic(gripper_task, oracle=CountingOracle())
    h.compute((0, 0))
    h.compute((0, 0))
    with caplog.at_level(logging.INFO):
        h.log_statistics()
    messages = [r.getMessage() for r in caplog.records]
    assert "Heuristic calls: 2" in messages
    assert "Oracle calls: 1, failures: 0" in messages


def test_constructed_from_command_line_expression(gripper_task):
    constructor = cli_constructor(Heuristic)("hantplan(module='antplan.oracles.examples', combine='add', include_structural=True)")
    h = constructor(gripper_task)
    assert isinstance(h, AntPlanHeuristic)
    assert h.compute((0, 0)) == 6
