"""
Tolerant JSON helpers for LLM responses.

LLMs wrap JSON in markdown fences, prepend chatter, and emit small syntax
errors. These helpers locate JSON inside free text with a string-aware
bracket scan and repair the common malformations:

- trailing commas before a closing bracket
- unquoted object keys
- single-quoted strings
- typographic ("smart") quotes used as delimiters
"""

import json
import re
from typing import Any, Iterator, List, Optional, Tuple

_FENCE_RE = re.compile(r'```[a-zA-Z0-9_-]*[ \t]*')
_IDENT_RE = re.compile(r'[A-Za-z_$][A-Za-z0-9_$-]*')

SMART_QUOTES = {
    '“': '"', '”': '"', '„': '"', '‟': '"',
    '‘': "'", '’': "'", '‚': "'", '‛': "'",
}


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers and surrounding whitespace."""
    if not text:
        return ""
    return _FENCE_RE.sub('', text).strip()


def _string_end(text: str, start: int, quote: str) -> int:
    """Index just past the string opened at `start` (len(text) if unterminated)."""
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '\\':
            i += 2
            continue
        if ch == quote:
            return i + 1
        i += 1
    return n


def find_closing(text: str, start: int) -> Optional[int]:
    """
    Given an opening '[' or '{' at `start`, return the index just past its
    matching close, ignoring brackets inside double-quoted strings.
    """
    pairs = {'[': ']', '{': '}'}
    if start >= len(text) or text[start] not in pairs:
        return None

    stack = []
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            i = _string_end(text, i, '"')
            continue
        if ch in pairs:
            stack.append(pairs[ch])
        elif ch in (']', '}'):
            if not stack or stack[-1] != ch:
                return None
            stack.pop()
            if not stack:
                return i + 1
        i += 1
    return None


def iter_array_candidates(text: str) -> Iterator[str]:
    """Yield balanced substrings shaped like `[ { ... } ]`, in order."""
    for match in re.finditer(r'\[\s*\{', text):
        end = find_closing(text, match.start())
        if end is not None:
            yield text[match.start():end]


def _object_spans(text: str) -> List[Tuple[int, int]]:
    """Spans of every balanced {...} at any depth."""
    spans = []
    stack = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            i = _string_end(text, i, '"')
            continue
        if ch == '{':
            stack.append(i)
        elif ch == '}' and stack:
            spans.append((stack.pop(), i + 1))
        i += 1
    return sorted(spans)


def _top_level_text(text: str, start: int, end: int) -> str:
    """Text of the object spanning [start, end) with nested objects and arrays left out."""
    out = []
    depth = 0
    i = start
    while i < end:
        ch = text[i]
        if ch == '"':
            j = _string_end(text, i, '"')
            if depth == 1:
                out.append(text[i:j])
            i = j
            continue
        if ch in '{[':
            depth += 1
        elif ch in '}]':
            depth -= 1
        elif depth == 1:
            out.append(ch)
        i += 1
    return ''.join(out)


def find_object_candidates(text: str, key: str = 'title') -> List[str]:
    """
    Substrings that look like individual objects carrying `key` directly.

    The outermost such object wins, so {"title": ..., "organizer": {"title": ...}}
    stays whole, while a wrapper such as {"events": [{"title": ...}]} has no
    key of its own and yields its inner records.
    """
    key_re = re.compile(r'["\'“”‘’]?\b' + re.escape(key) + r'\b["\'“”‘’]?\s*:')
    keyed = [(s, e) for s, e in _object_spans(text) if key_re.search(_top_level_text(text, s, e))]

    outermost = []
    for s, e in keyed:
        if any(s2 <= s and e <= e2 and (s2, e2) != (s, e) for s2, e2 in keyed):
            continue
        outermost.append(text[s:e])
    return outermost


def _requote_single(inner: str) -> str:
    inner = inner.replace("\\'", "'")
    inner = re.sub(r'(?<!\\)"', r'\\"', inner)
    return f'"{inner}"'


def repair(text: str) -> str:
    """
    Fix structural malformations outside of strings: trailing commas,
    unquoted keys and single-quoted strings.
    """
    out = []
    last = ''
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]

        if ch == '"':
            end = _string_end(text, i, '"')
            out.append(text[i:end])
            last = '"'
            i = end
            continue

        if ch == "'" and last in ('', '{', '[', ',', ':'):
            end = _string_end(text, i, "'")
            closed = end <= n and text[end - 1] == "'" and end - 1 > i
            inner = text[i + 1:end - 1] if closed else text[i + 1:end]
            out.append(_requote_single(inner))
            last = '"'
            i = end
            continue

        if ch == ',':
            j = i + 1
            while j < n and text[j].isspace():
                j += 1
            if j < n and text[j] in '}]':
                i += 1
                continue

        if last in ('{', ',') and (ch.isalpha() or ch in '_$'):
            match = _IDENT_RE.match(text, i)
            j = match.end()
            while j < n and text[j].isspace():
                j += 1
            if j < n and text[j] == ':':
                out.append(f'"{match.group(0)}"')
                last = '"'
                i = match.end()
                continue

        out.append(ch)
        if not ch.isspace():
            last = ch
        i += 1

    return ''.join(out)


def normalize_quotes(text: str) -> str:
    """Replace typographic quotes with their ASCII equivalents."""
    for smart, plain in SMART_QUOTES.items():
        text = text.replace(smart, plain)
    return text


def loads_tolerant(text: str) -> Any:
    """
    Parse JSON, retrying with structural repair and then with smart quotes
    normalized. Raises ValueError when every attempt fails.
    """
    attempts = (
        lambda t: t,
        repair,
        lambda t: repair(normalize_quotes(t)),
    )
    last_error = None
    for transform in attempts:
        try:
            return json.loads(transform(text))
        except (ValueError, RecursionError) as e:
            last_error = e
    raise ValueError(f"Unrepairable JSON: {last_error}")
