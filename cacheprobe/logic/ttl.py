import re
from typing import Optional

# s-maxage always wins: max-age only counts when no s-maxage follows it, and a
# leading s-maxage matches first by position.
MAX_AGE = re.compile(r"s-maxage=(?P<s_ttl>\d+)|max-age=(?!.*s-maxage)(?P<m_ttl>\d+)", re.IGNORECASE)


def parse_ttl(value: Optional[str]) -> Optional[int]:
    """
    Extract the shared-cache TTL in seconds from a Cache-Control style value.

    Returns None when there is no header at all, and 0 when the header exists
    but carries no usable max-age directive.
    """
    if value is None:
        return None

    match = MAX_AGE.search(value)
    if not match:
        return 0

    seconds = match.group("s_ttl") or match.group("m_ttl")
    return int(seconds) if seconds else 0
