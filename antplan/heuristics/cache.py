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
import threading
from typing import Dict, Optional, Tuple, Union

from antplan.task import State


FNV_OFFSET_BASIS = 0xCBF29CE484222325
FNV_PRIME = 0x100000001B3
GOLDEN_GAMMA = 0x9E3779B97F4A7C15
MASK_64 = 0xFFFFFFFFFFFFFFFF


def fingerprint(state: State) -> int:
    """
    64 bit FNV-1a accumulation of the state's values. The variable index is
    mixed into every step, so the same values in a different order give a
    different fingerprint.
    """
    h = FNV_OFFSET_BASIS
    for var, value in enumerate(state):
        h ^= (value + GOLDEN_GAMMA + (var << 1)) & MASK_64
        h = (h * FNV_PRIME) & MASK_64
    return h


class ResultCache:
    """
    Memoizes heuristic values by state fingerprint.

    Entries keep the state they were computed for, so a fingerprint collision
    is reported as a miss instead of returning another state's value. Once
    more than max_entries values are stored the whole cache is cleared.
    """

    def __init__(self, max_entries: int = 500000):
        self.max_entries = max(0, max_entries)
        self._entries: Dict[int, Tuple[State, Union[int, float]]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, state: State) -> Optional[Union[int, float]]:
        key = fingerprint(state)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry[0] != state:
                self.misses += 1
                return None
            self.hits += 1
            return entry[1]

    def put(self, state: State, value: Union[int, float]):
        key = fingerprint(state)
        with self._lock:
            if len(self._entries) > self.max_entries:
                logging.debug(f"Clearing heuristic cache with {len(self._entries)} entries")
                self._entries.clear()
                self.evictions += 1
            self._entries[key] = (state, value)

    def __len__(self):
        return len(self._entries)
