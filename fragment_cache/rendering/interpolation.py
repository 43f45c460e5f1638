"""
Content Interpolation

Substitutes per-call dynamic values into cached (or freshly rendered)
content. Cache the expensive, mostly static output once with placeholder
tokens in it, then personalise it on every hit:

    cached:  "<p>Hello __NAME__, it is __TIME__</p>"
    call:    interpolate(cached, {"__NAME__": user.name, "__TIME__": now})

Tokens are replaced literally and globally, in the map's insertion
order. Choosing tokens that cannot appear inside another token's
replacement value is the caller's job.
"""

from collections.abc import Mapping
from typing import Any

Content = str | bytes


def _to_text(value: Any) -> str:
    if isinstance(value, bytes | bytearray):
        return bytes(value).decode("utf-8")
    return str(value)


def interpolate(content: Content | None, interpolation: Mapping[Any, Any] | None) -> Content:
    """
    Replace every occurrence of each token with its value.

    Args:
        content: Rendered or cached content (str or UTF-8 bytes); None is
            treated as empty content
        interpolation: token -> value; tokens and values are stringified

    Returns:
        New content of the same type as `content`. Tokens that do not occur
        are ignored.
    """
    if content is None:
        return ""
    if not isinstance(content, str | bytes | bytearray):
        content = str(content)
    if not interpolation:
        return content

    if isinstance(content, bytes | bytearray):
        result = bytes(content)
        for token, value in interpolation.items():
            needle = _to_text(token).encode("utf-8")
            if needle and needle in result:
                result = result.replace(needle, _to_text(value).encode("utf-8"))
        return result

    result = content
    for token, value in interpolation.items():
        needle = _to_text(token)
        if needle and needle in result:
            result = result.replace(needle, _to_text(value))
    return result
