"""
Render-and-Cache Orchestration

FragmentRenderer.fragment_for() decides, per call, whether a fragment is
rendered fresh or taken from the cache, writes fresh output back, and
applies interpolation on every path so that a cache hit and a fresh
render produce the same bytes for the same interpolation map.

    bypass (caching off, blank key, `if` false): render → interpolate
    hit:  read_fragment → interpolate
    miss: render → write_fragment (un-interpolated) → interpolate

Render functions take no arguments, may be sync or async, and either
return their content or write it into the OutputBuffer passed as
`output`. In the second case the renderer records the buffer position
before rendering, takes the produced slice as its own value, truncates
the buffer back to that position and appends the interpolated result.
"""

import inspect
import io
from collections.abc import Callable, Mapping
from typing import Any

from fragment_cache.core.config.constants import LOG_KEY_MAX_LENGTH, Stage
from fragment_cache.core.logging.logger import get_logger, log_stage
from fragment_cache.core.models import FragmentOptions
from fragment_cache.infrastructure.cache.fragment_cache import (
    FragmentCache,
    OptionsLike,
    get_fragment_cache,
)
from fragment_cache.infrastructure.cache.local_cache import LocalScopedCache
from fragment_cache.rendering.interpolation import Content, interpolate

logger = get_logger(__name__)

RenderFn = Callable[[], Any]


class OutputBuffer:
    """Append-only text buffer a page is rendered into."""

    def __init__(self, initial: str = ""):
        self._buffer = io.StringIO()
        self._buffer.write(initial)

    @property
    def position(self) -> int:
        return self._buffer.tell()

    def write(self, text: Content) -> None:
        if isinstance(text, bytes | bytearray):
            text = bytes(text).decode("utf-8")
        self._buffer.write(text)

    def slice_from(self, start: int) -> str:
        """Text written since `start`."""
        return self._buffer.getvalue()[start:]

    def truncate(self, start: int) -> None:
        self._buffer.seek(start)
        self._buffer.truncate(start)

    def getvalue(self) -> str:
        return self._buffer.getvalue()

    def __len__(self) -> int:
        return self.position

    def __str__(self) -> str:
        return self.getvalue()


def _is_blank(key: Any) -> bool:
    if key is None:
        return True
    if isinstance(key, str):
        return not key.strip()
    if isinstance(key, Mapping | list | tuple):
        return len(key) == 0
    return False


class FragmentRenderer:
    """
    Fragment-level render/cache control point.

    Usage:
        renderer = FragmentRenderer(fragments)

        async with fragment_scope():
            html = await renderer.fragment_for(
                "views/products/7",
                {"expire": 900},
                {"__USER__": user.name},
                lambda: render_product(product),
            )
    """

    def __init__(self, fragments: FragmentCache | None = None):
        self._fragments = fragments or get_fragment_cache()

    @property
    def fragments(self) -> FragmentCache:
        return self._fragments

    async def fragment_for(
        self,
        key: Any,
        options: OptionsLike = None,
        interpolation: Mapping[Any, Any] | None = None,
        render_fn: RenderFn | None = None,
        *,
        output: OutputBuffer | None = None,
        scope: LocalScopedCache | None = None,
    ) -> Content:
        """
        Return a fragment, rendering and caching it on a miss.

        STAGE-3.0: Render

        Args:
            key: Fragment key; a blank key disables caching for this call
            options: FragmentOptions or mapping (expire, common_key, raw,
                cache, if)
            interpolation: token -> value applied to the final content
            render_fn: Zero-argument sync or async callable
            output: Buffer the result is appended to (and that render_fn
                may write into)
            scope: Local cache to use (default: the bound scope)

        Returns:
            The interpolated fragment

        Raises:
            InvalidOptionsError / InvalidKeyError: Bad options or key
        """
        if render_fn is None:
            raise TypeError("fragment_for() requires a render_fn")

        interpolation = interpolation or {}

        if not self._fragments.caching_enabled or _is_blank(key):
            content = await self._render(render_fn, output, key)
            return self._emit(interpolate(content, interpolation), output)

        opts = FragmentOptions.coerce(options)
        if opts.bypass:
            content = await self._render(render_fn, output, key)
            return self._emit(interpolate(content, interpolation), output)

        cached = await self._fragments.read_fragment(key, opts, scope=scope)
        if cached is not None:
            return self._emit(interpolate(cached, interpolation), output)

        content = await self._render(render_fn, output, key)
        await self._fragments.write_fragment(key, content, opts, scope=scope)
        return self._emit(interpolate(content, interpolation), output)

    # The view-helper spelling
    cache = fragment_for

    async def _render(self, render_fn: RenderFn, output: OutputBuffer | None, key: Any) -> Content:
        start = output.position if output is not None else 0

        result = render_fn()
        if inspect.isawaitable(result):
            result = await result

        produced = ""
        if output is not None:
            produced = output.slice_from(start)
            output.truncate(start)

        content = produced or result
        if content is None:
            content = ""

        log_stage(
            logger,
            Stage.RENDER,
            "Rendered fragment",
            level="debug",
            cache_key=str(key)[:LOG_KEY_MAX_LENGTH],
            length=len(content) if isinstance(content, str | bytes) else None,
        )
        return content

    @staticmethod
    def _emit(content: Content, output: OutputBuffer | None) -> Content:
        if output is not None:
            output.write(content)
        return content
