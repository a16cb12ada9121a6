"""
Reads finite-domain tasks in the translator output format (output.sas).
"""
import logging
from pathlib import Path
from typing import List, Union

from antplan.task import Effect, Operator, Task, Variable, pretty_name


SUPPORTED_VERSION = 3


class _Lines:
    """Line cursor that reports the line number of malformed input."""

    def __init__(self, text: str):
        self.lines = [line.strip() for line in text.splitlines()]
        self.pos = 0

    def next(self) -> str:
        while self.pos < len(self.lines) and self.lines[self.pos] == "":
            self.pos += 1
        if self.pos >= len(self.lines):
            raise ValueError("Unexpected end of SAS file")
        line = self.lines[self.pos]
        self.pos += 1
        return line

    def next_int(self) -> int:
        line = self.next()
        try:
            return int(line)
        except ValueError:
            raise ValueError(f"Line {self.pos}: expected a number, got '{line}'")

    def next_ints(self) -> List[int]:
        line = self.next()
        try:
            return [int(x) for x in line.split()]
        except ValueError:
            raise ValueError(f"Line {self.pos}: expected numbers, got '{line}'")

    def expect(self, keyword: str):
        line = self.next()
        if line != keyword:
            raise ValueError(f"Line {self.pos}: expected '{keyword}', got '{line}'")


def _read_variables(lines: _Lines) -> List[Variable]:
    variables = []
    for _ in range(lines.next_int()):
        lines.expect("begin_variable")
        name = lines.next()
        axiom_layer = lines.next_int()
        if axiom_layer != -1:
            raise ValueError(f"Variable {name} is derived (axiom layer {axiom_layer}), axioms are not supported")
        domain_size = lines.next_int()
        values = [pretty_name(lines.next()) for _ in range(domain_size)]
        lines.expect("end_variable")
        variables.append(Variable(name, values))
    return variables


def _skip_mutex_groups(lines: _Lines):
    for _ in range(lines.next_int()):
        lines.expect("begin_mutex_group")
        for _ in range(lines.next_int()):
            lines.next()
        lines.expect("end_mutex_group")


def _read_operator(lines: _Lines, use_metric: bool) -> Operator:
    lines.expect("begin_operator")
    name = lines.next()
    preconditions = []
    for _ in range(lines.next_int()):
        var, value = lines.next_ints()
        preconditions.append((var, value))
    effects = []
    for _ in range(lines.next_int()):
        numbers = lines.next_ints()
        num_conditions = numbers[0]
        conditions = [(numbers[1 + 2 * i], numbers[2 + 2 * i]) for i in range(num_conditions)]
        var, pre, post = numbers[1 + 2 * num_conditions :]
        if pre != -1:
            preconditions.append((var, pre))
        effects.append(Effect(var, post, conditions))
    cost = lines.next_int()
    lines.expect("end_operator")
    return Operator(f"({name})", preconditions, effects, cost if use_metric else 1)


def parse_sas(text: str, name: str = "task") -> Task:
    lines = _Lines(text)
    lines.expect("begin_version")
    version = lines.next_int()
    if version != SUPPORTED_VERSION:
        raise ValueError(f"SAS version {version} is not supported, expected {SUPPORTED_VERSION}")
    lines.expect("end_version")

    lines.expect("begin_metric")
    use_metric = lines.next_int() == 1
    lines.expect("end_metric")

    variables = _read_variables(lines)
    _skip_mutex_groups(lines)

    lines.expect("begin_state")
    initial_state = [lines.next_int() for _ in variables]
    lines.expect("end_state")

    lines.expect("begin_goal")
    goal = [tuple(lines.next_ints()) for _ in range(lines.next_int())]
    lines.expect("end_goal")

    operators = [_read_operator(lines, use_metric) for _ in range(lines.next_int())]

    num_axioms = lines.next_int()
    if num_axioms != 0:
        raise ValueError(f"Task has {num_axioms} axioms, axioms are not supported")

    task = Task(name, variables, initial_state, goal, operators)
    logging.info(f"{len(variables)} variables, {len(operators)} operators read")
    return task


def open_sas_task(path: Union[str, Path]) -> Task:
    path = Path(path)
    logging.info(f"Reading SAS task {path}")
    return parse_sas(path.read_text(), path.stem)

