from typing import List, Optional

from antplan.task import Operator, Task


class Search:
    """
    Interface for search algorithms.
    """

    def __init__(self, task: Task):
        self.task = task

    def search(self) -> Optional[List[Operator]]:
        raise NotImplementedError("Base class does not implement this method.")
