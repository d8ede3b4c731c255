"""Dependency graph over pipeline steps."""
from __future__ import annotations

import heapq
from typing import Dict, List, Optional, Sequence, Tuple

from .types import PipelineStep


class StepGraph:
    """Dependency graph of ``steps``.

    Edges point from a dependency to the step that needs it. Dependencies on
    steps outside the graph are reported by :meth:`missing_dependencies` and
    otherwise ignored.
    """

    def __init__(self, steps: Sequence[PipelineStep]) -> None:
        self.steps: Dict[str, PipelineStep] = {s.name: s for s in steps}

    def missing_dependencies(self) -> List[Tuple[str, str]]:
        """``(step, dependency)`` pairs whose dependency is not in the graph."""
        missing = []
        for step in self.steps.values():
            for dep in step.dependencies:
                if dep not in self.steps:
                    missing.append((step.name, dep))
        return missing

    def find_cycle(self) -> Optional[List[str]]:
        """Return one dependency cycle as a path (first node repeated), or None."""
        white, grey, black = 0, 1, 2
        color = {name: white for name in self.steps}
        stack: List[str] = []

        def visit(name: str) -> Optional[List[str]]:
            color[name] = grey
            stack.append(name)
            for dep in self.steps[name].dependencies:
                if dep not in self.steps:
                    continue
                if color[dep] == grey:
                    return stack[stack.index(dep):] + [dep]
                if color[dep] == white:
                    cycle = visit(dep)
                    if cycle:
                        return cycle
            stack.pop()
            color[name] = black
            return None

        for name in sorted(self.steps, key=self._sort_key):
            if color[name] == white:
                cycle = visit(name)
                if cycle:
                    return cycle
        return None

    def topological_order(self) -> List[PipelineStep]:
        """Steps with every dependency first; ``order`` then name break ties.

        Raises:
            ValueError: If the graph has a cycle
        """
        indegree = {name: 0 for name in self.steps}
        dependents: Dict[str, List[str]] = {name: [] for name in self.steps}
        for step in self.steps.values():
            for dep in step.dependencies:
                if dep in self.steps:
                    indegree[step.name] += 1
                    dependents[dep].append(step.name)

        ready = [self._sort_key(n) + (n,) for n, d in indegree.items() if d == 0]
        heapq.heapify(ready)
        ordered: List[PipelineStep] = []
        while ready:
            name = heapq.heappop(ready)[-1]
            ordered.append(self.steps[name])
            for child in dependents[name]:
                indegree[child] -= 1
                if indegree[child] == 0:
                    heapq.heappush(ready, self._sort_key(child) + (child,))

        if len(ordered) != len(self.steps):
            raise ValueError(f"Circular dependency: {' -> '.join(self.find_cycle() or [])}")
        return ordered

    def _sort_key(self, name: str) -> Tuple[int, str]:
        return (self.steps[name].order, name)


__all__ = ["StepGraph"]
