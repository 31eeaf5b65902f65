from dataclasses import dataclass
from typing import Mapping, Optional, Union

from cacheprobe.logic.headers import Header, as_headers
from cacheprobe.logic.rules import PLACEHOLDER, Branch, Constant, Rule, TrackedAge, evaluate_rule
from cacheprobe.logic.tracker import HitCounterTracker
from cacheprobe.logic.ttl import parse_ttl


@dataclass(frozen=True)
class LayerDefinition:
    name: str
    service: str
    layer: str
    enabled_rule: Rule
    status_rule: Rule = Constant(PLACEHOLDER)
    cache_header_rule: Rule = Constant(None)
    age_rule: Rule = Constant(PLACEHOLDER)

    @property
    def tracked_header(self) -> Optional[str]:
        if isinstance(self.age_rule, TrackedAge):
            return self.age_rule.header
        return None


@dataclass(frozen=True)
class LayerStatus:
    name: str
    service: str
    layer: str
    enabled: bool
    status: Optional[str] = PLACEHOLDER
    ttl: Union[int, str] = PLACEHOLDER
    age: Union[int, float, str] = PLACEHOLDER
    cache_header: Union[Header, str] = PLACEHOLDER
    detail: str = PLACEHOLDER


def evaluate_layer(definition: LayerDefinition, headers: Mapping[str, str],
                   tracker: Optional[HitCounterTracker] = None) -> LayerStatus:
    """
    Evaluate one cache layer against a response's headers.

    Everything but `enabled` collapses to the placeholder when the layer is
    off. A layer that is on but exposes none of its cache-control candidates
    reports a TTL of 0.
    """
    headers = as_headers(headers)
    enabled = bool(evaluate_rule(definition.enabled_rule, headers))

    if not enabled:
        detail = PLACEHOLDER
        if isinstance(definition.status_rule, Branch):
            detail = evaluate_rule(definition.status_rule, headers, enabled=False)
        return LayerStatus(
            name=definition.name,
            service=definition.service,
            layer=definition.layer,
            enabled=False,
            detail=detail,
        )

    status = evaluate_rule(definition.status_rule, headers, enabled=True, tracker=tracker)
    cache_header = evaluate_rule(definition.cache_header_rule, headers, enabled=True, tracker=tracker)
    if isinstance(cache_header, Header):
        ttl = parse_ttl(cache_header.value)
    else:
        ttl = 0
        cache_header = PLACEHOLDER
    age = evaluate_rule(definition.age_rule, headers, enabled=True, tracker=tracker)

    return LayerStatus(
        name=definition.name,
        service=definition.service,
        layer=definition.layer,
        enabled=True,
        status=status,
        ttl=ttl,
        age=age,
        cache_header=cache_header,
    )
