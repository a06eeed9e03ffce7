"""
Direct HTML extraction fallback.

Pattern-matches event fields straight out of card markup, with no network
access. Used when the LLM path under-delivers. Every fragment produces a
record: a card with no recognizable title becomes "Untitled Event" rather
than being dropped.
"""

import html as html_lib
import re
from datetime import date as date_cls, datetime, timedelta
from typing import List, Optional, Sequence, Union

from dateutil import parser as dateutil_parser
from dateutil.relativedelta import relativedelta

from .batching import split_markup
from .logger import get_logger
from .models import Batch, EventRecord, UNTITLED_EVENT

log = get_logger('fallback')

# Ordered attempts per field; first match wins
TITLE_PATTERNS = [
    re.compile(r'<h3[^>]*>([^<]+)</h3>', re.IGNORECASE),
    re.compile(r'style="font-size: 1\.06rem;[^>]*>([^<]+)</h3>', re.IGNORECASE),
]

DATETIME_PATTERNS = [
    re.compile(r'calendar[^>]*>(?:(?!</svg>)[\s\S])*</svg>\s*([^<]+)', re.IGNORECASE),
    re.compile(r'date[^>]*>([^<]+)</div>', re.IGNORECASE),
]

LOCATION_PATTERNS = [
    re.compile(r'location[^>]*>(?:(?!</svg>)[\s\S])*</svg>\s*([^<]+)', re.IGNORECASE),
    re.compile(r'location[^>]*>([^<]+)</div>', re.IGNORECASE),
]

ORGANIZER_PATTERNS = [
    re.compile(r'alt="([^"]+)"[^>]*size="40"', re.IGNORECASE),
    re.compile(r'<span style="width: 91%[^>]*>([^<]+)</span>', re.IGNORECASE),
]

IMAGE_PATTERNS = [
    re.compile(r'background-image: url\(&quot;([^&]+)&quot;\)', re.IGNORECASE),
    re.compile(r'background-image: url\("([^"]+)"\)', re.IGNORECASE),
    re.compile(r"background-image: url\('?([^)'\"]+)'?\)", re.IGNORECASE),
]


def _first_match(patterns, text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = html_lib.unescape(match.group(1)).strip()
            if value:
                return value
    return None


# A yearless date further than this before today belongs to next year
ROLLOVER_GRACE_DAYS = 7


def _has_year(text: str) -> bool:
    """True when `text` names its own year (parse results ignore the default year)."""
    first = dateutil_parser.parse(text, default=datetime(2000, 1, 1))
    second = dateutil_parser.parse(text, default=datetime(2004, 1, 1))
    return first.year == second.year


def parse_date_text(text: str, today: Optional[date_cls] = None) -> str:
    """
    ISO date for text that reads as a calendar date, else the text unchanged.

    Dates without a year take the year of `today`, or the following year when
    that would put them well in the past ("January 2" read on December 31).
    """
    today = today or date_cls.today()
    default = datetime(today.year, today.month, today.day)
    try:
        parsed = dateutil_parser.parse(text, default=default).date()
        if parsed < today - timedelta(days=ROLLOVER_GRACE_DAYS) and not _has_year(text):
            parsed = parsed + relativedelta(years=1)
    except (ValueError, OverflowError):
        return text
    return parsed.isoformat()


def split_date_time(text: str, today: Optional[date_cls] = None):
    """Split 'Monday, October 20 at 7:00PM EDT' into (date, time)."""
    parts = text.strip().split(' at ', 1)
    date_text = parts[0].strip()
    time_text = parts[1].strip() if len(parts) > 1 else ""
    date_value = parse_date_text(date_text, today) if date_text else ""
    return date_value, time_text


def extract_fragment(fragment: str, default_location: str = "",
                     today: Optional[date_cls] = None) -> EventRecord:
    """Build a record from a single card's markup."""
    date_value, time_value = "", ""
    datetime_text = _first_match(DATETIME_PATTERNS, fragment)
    if datetime_text:
        date_value, time_value = split_date_time(datetime_text, today)

    return EventRecord(
        title=_first_match(TITLE_PATTERNS, fragment) or UNTITLED_EVENT,
        date=date_value,
        time=time_value,
        location=_first_match(LOCATION_PATTERNS, fragment) or default_location,
        description="",
        organizer_name=_first_match(ORGANIZER_PATTERNS, fragment) or "",
        category="",
        image_url=_first_match(IMAGE_PATTERNS, fragment) or "",
    )


def extract_direct(markup: Union[str, Batch, Sequence[str]], default_location: str = "",
                   today: Optional[date_cls] = None) -> List[EventRecord]:
    """
    Extract one record per card from joined markup, a Batch, or a list of
    fragments. Never raises on unmatched patterns.
    """
    if isinstance(markup, Batch):
        fragments = markup.fragments
    elif isinstance(markup, str):
        fragments = split_markup(markup)
    else:
        fragments = list(markup)

    records = [
        extract_fragment(fragment, default_location, today)
        for fragment in fragments
        if fragment and fragment.strip()
    ]
    log.info(f"Direct extraction produced {len(records)} events from {len(fragments)} fragments")
    return records
