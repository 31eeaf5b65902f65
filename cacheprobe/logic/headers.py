from typing import Mapping, NamedTuple, Optional, Sequence

from multidict import CIMultiDict, CIMultiDictProxy


class Header(NamedTuple):
    name: str
    value: str

    def __str__(self) -> str:
        return f"{self.name}: {self.value}"


def as_headers(headers: Mapping[str, str]) -> CIMultiDictProxy:
    """Wrap a plain mapping so lookups ignore header-name case."""
    if isinstance(headers, CIMultiDictProxy):
        return headers
    return CIMultiDictProxy(CIMultiDict(headers))


def resolve_header(headers: Mapping[str, str], names: Sequence[str]) -> Optional[Header]:
    """
    Return the first of `names` present on the response, with its value.

    Order matters: vendor specific overrides (e.g. Cloudflare-CDN-Cache-Control)
    have to be listed before the generic Cache-Control fallback.
    """
    if not names:
        raise ValueError("At least one candidate header name is required")

    headers = as_headers(headers)
    for name in names:
        if name in headers:
            return Header(name, headers[name])
    return None
