"""
Viewer identification.

    async def route(viewer: Viewer = Depends(get_viewer)):
        if viewer.is_authenticated: ...
"""

from babelpost.auth.context import (
    TokenError,
    decode_viewer_token,
    get_viewer,
    parse_accept_language,
    resolve_viewer,
)

__all__ = [
    "TokenError",
    "decode_viewer_token",
    "get_viewer",
    "parse_accept_language",
    "resolve_viewer",
]
