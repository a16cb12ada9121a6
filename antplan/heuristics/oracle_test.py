import logging
import math
import threading
import time

import pytest

from antplan.heuristics.oracle import (
    FunctionOracle,
    ModuleOracle,
    Oracle,
    OracleBridge,
    OracleConfigurationError,
    make_snapshot,
    round_half_up,
)


class Scalar:
    """Behaves like a numpy or torch scalar."""

    def __init__(self, value):
        self.value = value

    def item(self):
        return self.value


def test_module_oracle_resolves_dotted_name():
    oracle = ModuleOracle("antplan.oracles.examples", "anticipatory_cost_fn")
    assert not oracle.ready
    assert oracle({"h_add": 5}) == 5
    assert oracle.ready


def test_module_oracle_from_file(tmp_path):
    path = tmp_path / "my_oracle.py"
    path.write_text("def anticipatory_cost_fn(snapshot):\n    return 2.5\n")
    bridge = OracleBridge(ModuleOracle(str(path)))
    assert bridge.evaluate({}) == 2.5
    assert bridge.score({}) == 3


def test_missing_module_names_module():
    oracle = ModuleOracle("antplan.no_such_module", "cost")
    with pytest.raises(OracleConfigurationError, match="antplan.no_such_module"):
        oracle.resolve()
    # The failure is remembered
    with pytest.raises(OracleConfigurationError, match="antplan.no_such_module"):
        oracle({})


def test_missing_function_names_function():
    with pytest.raises(OracleConfigurationError, match="no_such_fn"):
        ModuleOracle("antplan.oracles.examples", "no_such_fn").resolve()


def test_missing_module_name():
    with pytest.raises(OracleConfigurationError):
        ModuleOracle("", "cost").resolve()


def test_plain_callables_are_wrapped():
    bridge = OracleBridge(lambda snapshot: 4)
    assert isinstance(bridge.oracle, FunctionOracle)
    assert bridge.score({}) == 4


@pytest.mark.parametrize(
    "result, expected",
    [
        (3, 3),
        (2.5, 3),
        (2.49, 2),
        (-4.0, 0),
        (Scalar(1.6), 2),
    ],
)
def test_score_normalization(result, expected):
    assert OracleBridge(lambda snapshot: result).score({}) == expected


@pytest.mark.parametrize("result", [float("nan"), float("inf"), -float("inf"), "7", None, [1], True, Scalar(False)])
def test_invalid_results_give_fallback(result):
    bridge = OracleBridge(lambda snapshot: result, fallback=5)
    assert bridge.evaluate({}) is None
    assert bridge.score({}) == 5
    assert bridge.failures == 2


def test_raising_oracle_gives_fallback_and_releases_lock():
    def broken(snapshot):
        raise RuntimeError("boom")

    bridge = OracleBridge(broken)
    assert bridge.score({}) == 0
    assert not bridge._lock.locked()
    assert bridge.calls == 1
    assert bridge.failures == 1


def test_failures_are_logged_at_bounded_rate(caplog):
    bridge = OracleBridge(lambda snapshot: float("nan"), max_logged_failures=2)
    with caplog.at_level(logging.WARNING):
        for _ in range(5):
            bridge.score({})
    assert bridge.failures == 5
    assert len(caplog.records) == 3
    assert "not be logged" in caplog.records[-1].getMessage()


def test_unresolvable_oracle_is_fatal_when_required():
    bridge = OracleBridge(ModuleOracle("antplan.no_such_module"))
    with pytest.raises(OracleConfigurationError):
        bridge.score({})


def test_unresolvable_oracle_is_disabled_when_optional(caplog):
    bridge = OracleBridge(ModuleOracle("antplan.no_such_module"), fallback=0, require_oracle=False)
    with caplog.at_level(logging.ERROR):
        assert not bridge.ensure_ready()
        assert not bridge.ensure_ready()
    assert len(caplog.records) == 1
    assert "antplan.no_such_module" in caplog.records[0].getMessage()
    assert bridge.evaluate({}) is None
    assert bridge.calls == 0


def test_no_oracle():
    bridge = OracleBridge(None)
    assert not bridge.ensure_ready()
    assert bridge.score({}) == 0


def test_make_snapshot(gripper_task):
    assert make_snapshot(gripper_task, (0, 2), h_add=3) == {"robot": "A", "ball": "held", "h_add": 3}


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(1.5) == 2
    assert round_half_up(2.5) == 3
    assert round_half_up(0.49) == 0
    assert isinstance(round_half_up(math.pi), int)


class SlowOracle(Oracle):
    def __init__(self):
        self.resolutions = 0

    def resolve(self):
        self.resolutions += 1
        time.sleep(0.2)

    def __call__(self, snapshot):
        return 1


def test_concurrent_callers_resolve_once():
    oracle = SlowOracle()
    bridge = OracleBridge(oracle)
    scores = []
    threads = [threading.Thread(target=lambda: scores.append(bridge.score({}))) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert oracle.resolutions == 1
    assert scores == [1, 1, 1, 1]
    assert bridge.calls == 4


def test_concurrent_callers_log_configuration_error_once(caplog):
    bridge = OracleBridge(ModuleOracle("antplan.no_such_module"), require_oracle=False)
    with caplog.at_level(logging.ERROR):
        threads = [threading.Thread(target=bridge.ensure_ready) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
    assert len(caplog.records) == 1
    assert not bridge.enabled
