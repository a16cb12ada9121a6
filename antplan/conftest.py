import pytest

from antplan.task import Effect, Operator, Task, Variable


def make_light_switch_task(with_operator: bool = True) -> Task:
    operators = [Operator("turn_on", [(0, 0)], [Effect(0, 1)], 1)] if with_operator else []
    return Task("light", [Variable("light", ["off", "on"])], [0], [(0, 1)], operators)


def make_gripper_task() -> Task:
    """A robot in two rooms has to carry a ball from room A to room B."""
    robot, ball = 0, 1
    room_a, room_b, held = 0, 1, 2
    operators = [
        Operator("move_A_B", [(robot, room_a)], [Effect(robot, room_b)]),
        Operator("move_B_A", [(robot, room_b)], [Effect(robot, room_a)]),
        Operator("pick_A", [(robot, room_a), (ball, room_a)], [Effect(ball, held)]),
        Operator("pick_B", [(robot, room_b), (ball, room_b)], [Effect(ball, held)]),
        Operator("drop_A", [(robot, room_a), (ball, held)], [Effect(ball, room_a)]),
        Operator("drop_B", [(robot, room_b), (ball, held)], [Effect(ball, room_b)]),
    ]
    variables = [Variable("robot", ["A", "B"]), Variable("ball", ["A", "B", "held"])]
    return Task("gripper", variables, [room_a, room_a], [(ball, room_b)], operators)


@pytest.fixture
def light_switch_task():
    return make_light_switch_task()


@pytest.fixture
def gripper_task():
    return make_gripper_task()


@pytest.fixture
def op_index():
    def index(task, name):
        return task.find_operator(name).index

    return index
