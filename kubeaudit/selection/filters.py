from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Tuple

from ..errors import MutuallyExclusiveFilterError
from ..schemas import FilterOpts

CheckPredicate = Callable[[Any, Any], bool]


@dataclass(frozen=True)
class Check:
    id: str
    text: str = ""
    scored: bool = False


@dataclass(frozen=True)
class Group:
    id: str
    text: str = ""
    checks: Tuple[Check, ...] = field(default_factory=tuple)


def compile_filter(opts: FilterOpts) -> CheckPredicate:
    """Turn selection options into a ``(group, check) -> bool`` predicate."""
    by_group = opts.group_requested or bool(opts.group_list)
    by_check = opts.check_requested or bool(opts.check_list)
    if by_group and by_check:
        raise MutuallyExclusiveFilterError()

    if by_group:
        group_ids = opts.group_list

        def _by_group(group: Any, check: Any) -> bool:
            return group.id in group_ids

        return _by_group

    if by_check:
        check_ids = opts.check_list

        def _by_check(group: Any, check: Any) -> bool:
            return check.id in check_ids

        return _by_check

    scored = opts.scored
    unscored = opts.unscored

    def _by_score(group: Any, check: Any) -> bool:
        return (scored and check.scored) or (unscored and not check.scored)

    return _by_score


def select_checks(groups: Iterable[Any], predicate: CheckPredicate) -> List[Tuple[Any, Any]]:
    selected: List[Tuple[Any, Any]] = []
    for group in groups:
        for check in group.checks:
            if predicate(group, check):
                selected.append((group, check))
    return selected
