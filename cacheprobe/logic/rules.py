"""
Rule variants used by layer definitions.

Each layer is described by four rules (enabled, status, cache header, age).
A rule is a small frozen dataclass; `evaluate_rule` dispatches on its type, so
layer definitions stay declarative data.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple, Union

from cacheprobe.logic.headers import as_headers, resolve_header
from cacheprobe.logic.tracker import HitCounterTracker

PLACEHOLDER = "--"


@dataclass(frozen=True)
class Constant:
    value: Any


@dataclass(frozen=True)
class HeaderValue:
    name: str


@dataclass(frozen=True)
class HeaderNumber:
    name: str


@dataclass(frozen=True)
class HeaderPresent:
    name: str


@dataclass(frozen=True)
class HeaderExcludes:
    """Enabled when the header exists and does not contain `sentinel`."""
    name: str
    sentinel: str


@dataclass(frozen=True)
class HeaderIsNot:
    """Enabled when the header exists and is not exactly `value`."""
    name: str
    value: str


@dataclass(frozen=True)
class HeaderFallback:
    names: Tuple[str, ...]


@dataclass(frozen=True)
class Joined:
    names: Tuple[str, ...]
    separator: str = ":"


@dataclass(frozen=True)
class TrackedAge:
    """Age inferred from the hit counter carried by `header`."""
    header: str


@dataclass(frozen=True)
class Branch:
    enabled: "Rule"
    disabled: "Rule"


Rule = Union[Constant, HeaderValue, HeaderNumber, HeaderPresent, HeaderExcludes,
             HeaderIsNot, HeaderFallback, Joined, TrackedAge, Branch]


def _to_number(value: Optional[str]) -> int:
    try:
        return int(value.strip())
    except (AttributeError, ValueError):
        return 0


def evaluate_rule(rule: Rule, headers: Mapping[str, str], enabled: bool = True,
                  tracker: Optional[HitCounterTracker] = None) -> Any:
    headers = as_headers(headers)

    if isinstance(rule, Constant):
        return rule.value
    if isinstance(rule, HeaderValue):
        return headers.get(rule.name)
    if isinstance(rule, HeaderNumber):
        return _to_number(headers.get(rule.name))
    if isinstance(rule, HeaderPresent):
        return rule.name in headers
    if isinstance(rule, HeaderExcludes):
        value = headers.get(rule.name)
        return value is not None and rule.sentinel not in value
    if isinstance(rule, HeaderIsNot):
        value = headers.get(rule.name)
        return value is not None and value != rule.value
    if isinstance(rule, HeaderFallback):
        return resolve_header(headers, rule.names)
    if isinstance(rule, Joined):
        return rule.separator.join(str(headers.get(name)) for name in rule.names)
    if isinstance(rule, TrackedAge):
        if tracker is None:
            raise ValueError(f"Age of '{rule.header}' is tracked but no tracker was given")
        return tracker.age_since_reset()
    if isinstance(rule, Branch):
        chosen = rule.enabled if enabled else rule.disabled
        return evaluate_rule(chosen, headers, enabled, tracker)

    raise TypeError(f"Unknown rule type: {type(rule).__name__}")
