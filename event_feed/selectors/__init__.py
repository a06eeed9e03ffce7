"""
Card selector strategies, tried in order.
"""

from .base import CardSelectorStrategy
from .mui_card import MuiCardSelector
from .event_link import EventLinkSelector
from .inline_style import InlineStyleSelector


def default_strategies():
    """Primary, secondary, tertiary."""
    return [MuiCardSelector(), EventLinkSelector(), InlineStyleSelector()]


__all__ = [
    'CardSelectorStrategy',
    'MuiCardSelector',
    'EventLinkSelector',
    'InlineStyleSelector',
    'default_strategies',
]
