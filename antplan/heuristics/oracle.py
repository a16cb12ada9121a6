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
Access to an external cost oracle.

An oracle is any callable that maps a snapshot of a state (variable name ->
value name, plus optional numeric entries) to a cost estimate. The bridge
resolves it once, serializes calls, and turns every failure into a fallback
value so that a broken oracle never stops the search.
"""

from abc import ABC, abstractmethod
import importlib
import importlib.util
import logging
import math
import numbers
from pathlib import Path
import threading
from typing import Any, Callable, Dict, Optional, Union

from antplan.task import State, Task


DEFAULT_FUNCTION = "anticipatory_cost_fn"

Snapshot = Dict[str, Any]


class OracleConfigurationError(RuntimeError):
    """The configured oracle module or function cannot be found."""


class Oracle(ABC):
    def resolve(self):
        """Loads whatever the oracle needs. Raises OracleConfigurationError."""

    @abstractmethod
    def __call__(self, snapshot: Snapshot) -> Any:
        pass


class FunctionOracle(Oracle):
    def __init__(self, function: Callable[[Snapshot], Any]):
        self.function = function

    def __call__(self, snapshot: Snapshot) -> Any:
        return self.function(snapshot)

    def __repr__(self):
        return f"<FunctionOracle {getattr(self.function, '__name__', self.function)}>"


class ModuleOracle(Oracle):
    """
    Calls function "function" of a python module. "module" is either a
    dotted module name or the path of a .py file. The module is imported on
    first use; a failed import is remembered and not retried.
    """

    def __init__(self, module: str, function: str = DEFAULT_FUNCTION):
        self.module = module
        self.function = function
        self.ready = False
        self._function: Optional[Callable[[Snapshot], Any]] = None
        self._error: Optional[OracleConfigurationError] = None

    def _import(self):
        if self.module.endswith(".py"):
            path = Path(self.module)
            if not path.is_file():
                raise FileNotFoundError(f"No such file: {path}")
            spec = importlib.util.spec_from_file_location(path.stem, path)
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
            return module
        return importlib.import_module(self.module)

    def resolve(self):
        if self.ready:
            return
        if self._error is not None:
            raise self._error
        try:
            if not self.module:
                raise OracleConfigurationError(f"No oracle module given for function '{self.function}'")
            try:
                module = self._import()
            except Exception as e:
                raise OracleConfigurationError(f"Could not import oracle module '{self.module}': {e}") from e
            function = getattr(module, self.function, None)
            if function is None or not callable(function):
                raise OracleConfigurationError(f"Oracle function '{self.function}' not found in module '{self.module}'")
        except OracleConfigurationError as e:
            self._error = e
            raise
        self._function = function
        self.ready = True
        logging.info(f"Oracle ready: {self.module}.{self.function}")

    def __call__(self, snapshot: Snapshot) -> Any:
        self.resolve()
        return self._function(snapshot)

    def __repr__(self):
        return f"<ModuleOracle {self.module}.{self.function}>"


def make_snapshot(task: Task, state: State, **auxiliary: Union[int, float]) -> Snapshot:
    snapshot: Snapshot = task.snapshot(state)
    snapshot.update(auxiliary)
    return snapshot


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _to_float(result: Any) -> float:
    # numpy and torch scalars
    if hasattr(result, "item"):
        result = result.item()
    if isinstance(result, bool) or not isinstance(result, numbers.Real):
        raise TypeError(f"oracle returned {type(result).__name__}, expected a number")
    return float(result)


class OracleBridge:
    """
    Guards all calls to an oracle.

    evaluate() returns the oracle's value clamped to be non-negative, or None
    if the call failed. score() rounds that value to the nearest integer
    (halves up) and substitutes "fallback" for failures.

    If the oracle cannot be resolved, the error is raised when
    require_oracle is set; otherwise it is logged once and the bridge stays
    disabled for the rest of the run.
    """

    def __init__(
        self,
        oracle: Optional[Union[Oracle, Callable[[Snapshot], Any]]],
        fallback: Union[int, float] = 0,
        require_oracle: bool = True,
        debug: bool = False,
        max_logged_failures: int = 10,
    ):
        if oracle is not None and not isinstance(oracle, Oracle):
            oracle = FunctionOracle(oracle)
        self.oracle: Optional[Oracle] = oracle
        self.fallback = fallback
        self.require_oracle = require_oracle
        self.debug = debug
        self.max_logged_failures = max_logged_failures
        self.enabled = oracle is not None
        self._resolved = False
        self._ready_lock = threading.Lock()
        self._lock = threading.Lock()
        self.calls = 0
        self.failures = 0

    def ensure_ready(self) -> bool:
        if self._resolved:
            return True
        with self._ready_lock:
            if not self.enabled:
                return False
            if self._resolved:
                return True
            try:
                self.oracle.resolve()
            except OracleConfigurationError as e:
                if self.require_oracle:
                    raise
                logging.error(f"{e}. Continuing without oracle.")
                self.enabled = False
                return False
            self._resolved = True
            return True

    def _report_failure(self, reason: str, exc: Optional[BaseException] = None):
        self.failures += 1
        if self.failures <= self.max_logged_failures:
            logging.warning(f"Oracle call failed: {reason}", exc_info=exc if self.debug else None)
            if self.failures == self.max_logged_failures:
                logging.warning("Further oracle failures will not be logged")

    def evaluate(self, snapshot: Snapshot) -> Optional[float]:
        if not self.ensure_ready():
            return None
        with self._lock:
            self.calls += 1
            try:
                value = _to_float(self.oracle(snapshot))
            except Exception as e:
                self._report_failure(f"{type(e).__name__}: {e}", e)
                return None
        if not math.isfinite(value):
            self._report_failure(f"non-finite value {value}")
            return None
        return max(0.0, value)

    def score(self, snapshot: Snapshot) -> Union[int, float]:
        value = self.evaluate(snapshot)
        if value is None:
            return self.fallback
        return round_half_up(value)
