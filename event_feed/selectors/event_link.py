"""
Event detail links.

Secondary strategy: find anchors pointing at /event/<id> pages and lift
each to the container that holds the whole card.
"""

from .base import CardSelectorStrategy

CONTAINER_JS = """elements => elements.map(link => {
    const container = link.closest('div[style*="box-sizing: border-box"]') ||
                      (link.parentElement && link.parentElement.parentElement);
    return container ? container.outerHTML : link.outerHTML;
})"""


class EventLinkSelector(CardSelectorStrategy):
    """Match event detail anchors, returning their card container."""

    name = "event_link"
    selector = 'a[href^="/event/"]'

    def script(self) -> str:
        return CONTAINER_JS
