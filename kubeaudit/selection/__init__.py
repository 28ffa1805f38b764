"""Selection of the benchmark checks to run."""

from .filters import Check, CheckPredicate, Group, compile_filter, select_checks

__all__ = ["Check", "CheckPredicate", "Group", "compile_filter", "select_checks"]
