"""
Revision graph – parent/child adjacency over migration steps.

Each step names at most one predecessor, so the graph is a forest of trees
rooted at steps without a predecessor. A plain history is a single chain.

* ``heads`` – steps nothing builds on (candidates for "latest")
* ``tails`` – steps without a predecessor (candidates for "first")

Paths include both endpoints: upgrading from A to C visits [A, B, C],
downgrading from C to A visits [C, B, A].
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional

from ..errors import EmptyRevisionGraphError, MigrationError, NoMigrationPathError

if TYPE_CHECKING:  # for type-checkers
    from .runner import MigrationStep


class RevisionGraph:
    def __init__(self, steps: Iterable["MigrationStep"]):
        self.revisions: Dict[str, "MigrationStep"] = {}
        self.children: Dict[str, List[str]] = {}
        self.parents: Dict[str, str] = {}

        for step in steps:
            if step.id in self.revisions:
                raise MigrationError(f"duplicate revision id '{step.id}'")
            self.revisions[step.id] = step

        for step in self.revisions.values():
            if step.previous_id is None:
                continue
            if step.previous_id not in self.revisions:
                raise MigrationError(
                    f"revision '{step.id}' follows unknown revision '{step.previous_id}'"
                )
            self.children.setdefault(step.previous_id, []).append(step.id)
            self.parents[step.id] = step.previous_id

    def __len__(self) -> int:
        return len(self.revisions)

    def __contains__(self, revision_id: object) -> bool:
        return revision_id in self.revisions

    # ---- ends ---------------------------------------------------------------
    @property
    def heads(self) -> List[str]:
        return [rid for rid in self.revisions if rid not in self.children]

    @property
    def tails(self) -> List[str]:
        return [rid for rid in self.revisions if rid not in self.parents]

    def _require_steps(self) -> None:
        if not self.revisions:
            raise EmptyRevisionGraphError("no migrations registered")

    def _single(self, candidates: List[str], what: str) -> str:
        if not self.revisions:
            raise EmptyRevisionGraphError(f"no {what} revision: no migrations registered")
        if len(candidates) > 1:
            raise MigrationError(
                f"ambiguous {what} revision, candidates: {', '.join(candidates)}"
            )
        return candidates[0]

    def head(self) -> str:
        return self._single(self.heads, "head")

    def tail(self) -> str:
        return self._single(self.tails, "tail")

    # ---- path search --------------------------------------------------------
    def _find_path(
        self, start: str, goal: str, step: Callable[[str], List[str]]
    ) -> Optional[List[str]]:
        if start not in self.revisions or goal not in self.revisions:
            return None
        if start == goal:
            return [start]

        visited = {start}
        queue = deque([[start]])
        while queue:
            path = queue.popleft()
            for neighbour in step(path[-1]):
                if neighbour == goal:
                    return path + [neighbour]
                if neighbour not in visited:
                    visited.add(neighbour)
                    queue.append(path + [neighbour])
        return None

    def find_up_path(self, start: str, goal: str) -> Optional[List[str]]:
        return self._find_path(start, goal, lambda rid: self.children.get(rid, []))

    def find_down_path(self, start: str, goal: str) -> Optional[List[str]]:
        def parent(rid: str) -> List[str]:
            return [self.parents[rid]] if rid in self.parents else []

        return self._find_path(start, goal, parent)

    def upgrade_path(self, start: str, goal: str) -> List["MigrationStep"]:
        self._require_steps()
        ids = self.find_up_path(start, goal)
        if ids is None:
            raise NoMigrationPathError(start, goal, "up")
        return [self.revisions[rid] for rid in ids]

    def downgrade_path(self, start: str, goal: str) -> List["MigrationStep"]:
        self._require_steps()
        ids = self.find_down_path(start, goal)
        if ids is None:
            raise NoMigrationPathError(start, goal, "down")
        return [self.revisions[rid] for rid in ids]
