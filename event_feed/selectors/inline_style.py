"""
Inline style fingerprints.

Last resort when class names and links change: cards have carried these
inline layout styles.
"""

from .base import CardSelectorStrategy, OUTER_HTML_JS


class InlineStyleSelector(CardSelectorStrategy):
    """Match divs by inline padding/width styles."""

    name = "inline_style"
    selector = 'div[style*="padding: 10px"], div[style*="width: 50%"]'

    def script(self) -> str:
        return OUTER_HTML_JS
