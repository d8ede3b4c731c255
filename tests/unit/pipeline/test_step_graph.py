"""Tests for StepGraph ordering and cycle detection."""
from __future__ import annotations

import pytest

from legalmd.core.pipeline import PipelineStep, StepGraph
from pipeline_helpers import AppendProcessor


def make(name: str, order: int = 0, deps=()) -> PipelineStep:
    return PipelineStep(name, AppendProcessor(name), order=order, dependencies=list(deps))


def test_topological_order_breaks_ties_by_order_then_name() -> None:
    graph = StepGraph([make("z", 1), make("y", 1), make("x", 0, ["z"])])
    assert [s.name for s in graph.topological_order()] == ["y", "z", "x"]


def test_missing_dependencies() -> None:
    graph = StepGraph([make("a", deps=["ghost"]), make("b", deps=["a"])])
    assert graph.missing_dependencies() == [("a", "ghost")]
    assert [s.name for s in graph.topological_order()] == ["a", "b"]


class TestCycles:
    def test_find_cycle_returns_path(self) -> None:
        graph = StepGraph([make("a", deps=["c"]), make("b", deps=["a"]), make("c", deps=["b"])])
        cycle = graph.find_cycle()
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"a", "b", "c"}

    def test_self_dependency(self) -> None:
        assert StepGraph([make("a", deps=["a"])]).find_cycle() == ["a", "a"]

    def test_acyclic(self) -> None:
        assert StepGraph([make("a"), make("b", deps=["a"])]).find_cycle() is None

    def test_topological_order_raises(self) -> None:
        graph = StepGraph([make("a", deps=["b"]), make("b", deps=["a"])])
        with pytest.raises(ValueError, match="Circular dependency"):
            graph.topological_order()
