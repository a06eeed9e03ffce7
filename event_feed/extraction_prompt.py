"""
Prompt for converting event card markup into JSON records.
"""

PROMPT_TEMPLATE = """You are a data extraction expert. Your task is to extract event information from HTML event cards from an events listing page.

The input contains {card_count} event cards.

IMPORTANT: Extract EACH event card as a separate JSON object. Don't skip any events.
Every object MUST have a non-empty "title".

For each card, extract these fields:
- title: Event title (text inside h3 tags)
- date: Event date in YYYY-MM-DD format if possible
- time: Event time
- location: Event location (often after a location icon)
- description: Brief description if available (may be empty)
- organizerName: Organization name (often at the bottom of card)
- category: Event category if available (may be empty)
- imageUrl: URL in background-image style attribute if present

OUTPUT FORMAT: A JSON array of event objects ONLY, no additional text:
[
  {{
    "title": "Event Title",
    "date": "YYYY-MM-DD",
    "time": "Time",
    "location": "Location",
    "description": "Description",
    "organizerName": "Organizer",
    "category": "Category",
    "imageUrl": "ImageURL"
  }}
]

HTML content:
{html}
"""


def build_prompt(html: str, card_count: int) -> str:
    """Fill the extraction prompt for a batch of (possibly truncated) markup."""
    return PROMPT_TEMPLATE.format(card_count=card_count, html=html)
