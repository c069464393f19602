"""
Babelpost - language detection and on-demand translation of posts.

The core is provider-agnostic: Google, Microsoft, Amazon and Yandex sit
behind one `detect` / `translate` interface, detection runs once per post
across all workers, and a visibility policy decides when to offer the
translate button.
"""

__version__ = "0.3.0"
