"""Shared utilities."""
from .merge import deep_merge, merge_arrays, merge_missing

__all__ = ["deep_merge", "merge_arrays", "merge_missing"]
