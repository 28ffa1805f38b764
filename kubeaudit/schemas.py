from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator, model_validator


def _split_id_list(value: Any) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    else:
        items = value
    result = set()
    for item in items:
        text = str(item).strip()
        if text:
            result.add(text)
    return frozenset(result)


def _is_given(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    return bool(value)


class VersionDocument(BaseModel):
    """Body of the apiserver ``/version`` endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    major: StrictStr = ""
    minor: StrictStr = ""
    git_version: StrictStr = Field("", alias="gitVersion")
    git_commit: StrictStr = Field("", alias="gitCommit")
    git_tree_state: StrictStr = Field("", alias="gitTreeState")
    build_date: StrictStr = Field("", alias="buildDate")
    go_version: StrictStr = Field("", alias="goVersion")
    compiler: StrictStr = ""
    platform: StrictStr = ""

    @model_validator(mode="before")
    @classmethod
    def _match_keys_ignoring_case(cls, data: Any) -> Any:
        # Keys match exactly first, otherwise case-insensitively.
        if not isinstance(data, dict):
            return data
        known = {}
        for name, info in cls.model_fields.items():
            key = info.alias or name
            known[key.lower()] = key
        result: Dict[Any, Any] = {}
        for key, value in data.items():
            canonical = known.get(key.lower()) if isinstance(key, str) else None
            if canonical is None or key == canonical:
                result[key] = value
            elif canonical not in data and canonical not in result:
                result[canonical] = value
        return result


class VersionMapRule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    match: StrictStr = Field(..., min_length=1)
    target: StrictStr = Field(..., min_length=1)


class RoleSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    components: Tuple[StrictStr, ...] = ()
    binaries: Dict[str, Tuple[StrictStr, ...]] = Field(default_factory=dict)

    def candidates(self, component: str) -> Tuple[str, ...]:
        return self.binaries.get(component) or (component,)


class FilterOpts(BaseModel):
    """Check selection options as given on the command line.

    ``group_list`` and ``check_list`` accept the raw comma-separated flag
    values and are normalised to sets of ids. ``group_requested`` and
    ``check_requested`` record whether the raw value was non-empty, so a
    list such as ``","`` still selects by group or check (and matches
    nothing) instead of falling back to scored/unscored selection.
    """

    model_config = ConfigDict(frozen=True)

    scored: bool = True
    unscored: bool = True
    group_list: FrozenSet[str] = Field(default_factory=frozenset)
    check_list: FrozenSet[str] = Field(default_factory=frozenset)
    group_requested: bool = False
    check_requested: bool = False

    @model_validator(mode="before")
    @classmethod
    def _record_requested_lists(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            data.setdefault("group_requested", _is_given(data.get("group_list")))
            data.setdefault("check_requested", _is_given(data.get("check_list")))
        return data

    @field_validator("group_list", "check_list", mode="before")
    @classmethod
    def _parse_id_list(cls, value: Any) -> FrozenSet[str]:
        return _split_id_list(value)

    def summary(self) -> Dict[str, Any]:
        return {
            "scored": self.scored,
            "unscored": self.unscored,
            "groups": sorted(self.group_list),
            "checks": sorted(self.check_list),
        }
