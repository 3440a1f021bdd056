"""
Parse build references out of Buildkite web URLs.
"""

import re

from kitewatch.models import BuildRef

# https://buildkite.com/{org}/{pipeline}/builds/{number}
_BUILD_URL_RE = re.compile(
    r"^https?://[^/\s]+/(?P<org>[^/?#\s]+)/(?P<pipeline>[^/?#\s]+)/builds/(?P<number>\d+)(?:[/?#]\S*)?$",
    re.IGNORECASE,
)


def parse_build_url(url: str) -> BuildRef | None:
    """Extract (org, pipeline, number) from a build URL, or None if it is not one."""
    if not url:
        return None
    match = _BUILD_URL_RE.match(url.strip())
    if not match:
        return None
    return BuildRef(
        org=match.group("org"),
        pipeline=match.group("pipeline"),
        number=int(match.group("number")),
    )
