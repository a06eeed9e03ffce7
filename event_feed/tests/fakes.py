"""
Test doubles shared across test modules.
"""

from typing import Dict, List, Optional

from event_feed.errors import CompletionError
from event_feed.llm_client import CompletionClient


class ScriptedClient(CompletionClient):
    """Returns queued responses in order; an Exception entry is raised."""

    provider = "scripted"

    def __init__(self, responses: Optional[List] = None, usage: Optional[Dict[str, int]] = None):
        self.responses = list(responses or [])
        self.prompts: List[str] = []
        self._last_usage = usage

    def complete(self, prompt: str, max_tokens: int = 8192) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            return "[]"
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def rate_limited() -> CompletionError:
    return CompletionError("429 Too Many Requests", provider="scripted", status_code=429)


def card(title: Optional[str], location: str = "Stamp Student Union",
         when: str = "Tuesday, October 20, 2026 at 7:00PM EDT",
         organizer: str = "Student Government Association",
         image: str = "https://cdn.example.edu/images/event.png") -> str:
    """Markup shaped like a listing card."""
    heading = f'<h3 style="font-size: 1.06rem; margin: 0">{title}</h3>' if title is not None else ''
    return (
        '<div class="MuiPaper-root MuiCard-root">'
        f'<div style="background-image: url(&quot;{image}&quot;); height: 100px"></div>'
        f'{heading}'
        f'<div><svg class="calendar-icon" viewBox="0 0 24 24"><path d="M0 0h24v24H0z"></path></svg>{when}</div>'
        f'<div><svg class="location-icon" viewBox="0 0 24 24"><path d="M12 2"></path></svg>{location}</div>'
        f'<div><img alt="{organizer}" src="/logo.png" size="40">'
        f'<span style="width: 91%; overflow: hidden">{organizer}</span></div>'
        '</div>'
    )
