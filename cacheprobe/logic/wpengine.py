"""
Cache layers of a WP Engine hosted WordPress GraphQL endpoint, in display and
CSV column order.
"""
from cacheprobe.logic.layers import LayerDefinition
from cacheprobe.logic.rules import (
    Branch, HeaderFallback, HeaderIsNot, HeaderExcludes, HeaderNumber,
    HeaderPresent, HeaderValue, Joined, TrackedAge,
)

SMART_CACHE = LayerDefinition(
    name="WPGraphQL Smart Cache",
    service="WordPress",
    layer="Application",
    enabled_rule=HeaderPresent("x-graphql-keys"),
    cache_header_rule=HeaderFallback(("x-orig-cache-control",)),
)

PAGE_CACHE = LayerDefinition(
    name="Page Cache",
    service="Varnish",
    layer="Server",
    enabled_rule=HeaderExcludes("x-cacheable", "NO"),
    status_rule=Branch(
        enabled=HeaderValue("x-cache"),
        disabled=Joined(("x-cacheable", "x-pass-why")),
    ),
    cache_header_rule=HeaderFallback(("Cache-Control",)),
    age_rule=TrackedAge("x-cache"),
)

EDGE_CACHE = LayerDefinition(
    name="Edge Full Page Cache",
    service="GES | Advanced Network (Cloudflare)",
    layer="Edge",
    enabled_rule=HeaderIsNot("cf-cache-status", "DYNAMIC"),
    status_rule=HeaderValue("cf-cache-status"),
    cache_header_rule=HeaderFallback(("Cloudflare-CDN-Cache-Control", "CDN-Cache-Control", "Cache-Control")),
    age_rule=HeaderNumber("age"),
)

LAYERS = (SMART_CACHE, PAGE_CACHE, EDGE_CACHE)
