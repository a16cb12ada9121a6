import pytest

from antplan.cli import cli_constructor
from antplan.conftest import make_light_switch_task
from antplan.heuristics.antplan_heuristic import AntPlanHeuristic
from antplan.heuristics.blind import BlindHeuristic
from antplan.heuristics.relaxation import hAddHeuristic, hFFHeuristic, hMaxHeuristic
from antplan.search import searchspace
from antplan.search.a_star import AStarSearch, GreedyBestFirstSearch, WeightedAStarSearch
from antplan.search.search import Search
from antplan.task import Effect, Operator, Task, Variable


def plan_names(plan):
    return [op.name for op in plan]


@pytest.mark.parametrize("search_class", [AStarSearch, GreedyBestFirstSearch, WeightedAStarSearch])
@pytest.mark.parametrize("heuristic", [BlindHeuristic, hAddHeuristic, hMaxHeuristic, hFFHeuristic, AntPlanHeuristic])
def test_gripper_is_solved(gripper_task, search_class, heuristic):
    plan = search_class(gripper_task, heuristic=heuristic).search()
    assert plan_names(plan) == ["pick_A", "move_A_B", "drop_B"]


def test_astar_finds_cheapest_plan():
    operators = [
        Operator("expensive", [(0, 0)], [Effect(0, 2)], 10),
        Operator("step_1", [(0, 0)], [Effect(0, 1)], 2),
        Operator("step_2", [(0, 1)], [Effect(0, 2)], 2),
    ]
    task = Task("detour", [Variable("x", ["s", "m", "g"])], [0], [(0, 2)], operators)
    plan = AStarSearch(task, heuristic=hMaxHeuristic).search()
    assert plan_names(plan) == ["step_1", "step_2"]


def test_unsolvable_task():
    task = make_light_switch_task(with_operator=False)
    assert GreedyBestFirstSearch(task, heuristic=hAddHeuristic).search() is None
    assert AStarSearch(task).search() is None


def test_goal_in_initial_state(light_switch_task):
    task = Task("done", light_switch_task.variables, [1], [(0, 1)], light_switch_task.operators)
    assert GreedyBestFirstSearch(task, heuristic=hFFHeuristic).search() == []


def test_preferred_successors_are_expanded_first(gripper_task):
    search = GreedyBestFirstSearch(gripper_task, heuristic=hAddHeuristic)
    root = search._make_open_entry(object(), 3, False, 0)
    preferred = search._make_open_entry(object(), 3, True, 1)
    assert preferred[:3] < root[:3]
    plain = GreedyBestFirstSearch(gripper_task, heuristic=hAddHeuristic, use_preferred_ops=False)
    assert plain.search() is not None


def test_weighted_astar_weight(gripper_task):
    search = WeightedAStarSearch(gripper_task, weight=3, heuristic=hAddHeuristic)
    assert search.weight == 3
    assert search._make_open_entry(type("Node", (), {"g": 2})(), 4, False, 0)[0] == 14


def test_search_from_command_line_expression(gripper_task):
    search = cli_constructor(Search)("gbfs(heuristic=hantplan(module='antplan.oracles.examples', include_structural=True))")(gripper_task)
    assert isinstance(search, GreedyBestFirstSearch)
    assert isinstance(search.heuristic, AntPlanHeuristic)
    assert len(search.search()) == 3


def test_reevaluation_keeps_preferred_operators(gripper_task, op_index):
    search = GreedyBestFirstSearch(gripper_task, heuristic=AntPlanHeuristic)
    root = searchspace.make_root_node(gripper_task.initial_state)
    preferred_of = {}
    assert search._evaluate(root, preferred_of) == 3
    expected = frozenset({op_index(gripper_task, "pick_A"), op_index(gripper_task, "move_A_B")})
    assert preferred_of[root.state] == expected
    # The second evaluation is answered from the cache
    assert search._evaluate(root, preferred_of) == 3
    assert search.heuristic.preferred_operators == set()
    assert preferred_of[root.state] == expected
