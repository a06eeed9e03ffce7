"""
Base class for card selector strategies.
"""

from abc import ABC, abstractmethod
from typing import List

from playwright.async_api import Page

# Returns the outerHTML of every element matching the selector
OUTER_HTML_JS = "elements => elements.map(el => el.outerHTML)"


class CardSelectorStrategy(ABC):
    """Finds listing cards on a rendered page."""

    name: str
    selector: str

    async def collect(self, page: Page) -> List[str]:
        """
        Return one markup fragment per matched card.

        Args:
            page: Page that has finished rendering

        Returns:
            Outer HTML of each card, in document order (may be empty)
        """
        fragments = await page.eval_on_selector_all(self.selector, self.script())
        return [fragment for fragment in fragments if fragment]

    @abstractmethod
    def script(self) -> str:
        """JS function mapping matched elements to markup strings."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.selector!r})"
