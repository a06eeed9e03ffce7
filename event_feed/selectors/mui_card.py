"""
Material UI card containers.

Primary strategy: the listing renders each event as a MUI Paper card.
"""

from .base import CardSelectorStrategy, OUTER_HTML_JS


class MuiCardSelector(CardSelectorStrategy):
    """Match MUI card containers directly."""

    name = "mui_card"
    selector = "div.MuiPaper-root.MuiCard-root"

    def script(self) -> str:
        return OUTER_HTML_JS
