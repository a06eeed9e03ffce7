"""
Structured extraction of event records from batch markup.

One completion call per batch; the response runs through the decode
cascade and only records with a title survive.
"""

from typing import List

from .batching import count_cards
from .decoding import decode_events
from .errors import CompletionError
from .extraction_prompt import build_prompt
from .llm_client import CompletionClient
from .logger import get_logger
from .models import EventRecord, ExtractionResult

log = get_logger('extractor')

MAX_PROMPT_CHARS = 40000
PREVIEW_CHARS = 500


def truncate_markup(markup: str, max_chars: int = MAX_PROMPT_CHARS) -> str:
    """Cut markup to the prompt budget."""
    if len(markup) <= max_chars:
        return markup
    return markup[:max_chars]


class StructuredExtractor:
    """Converts batch markup to EventRecords through a completion service."""

    def __init__(self, client: CompletionClient, max_chars: int = MAX_PROMPT_CHARS,
                 default_location: str = "", max_tokens: int = 8192):
        self.client = client
        self.max_chars = max_chars
        self.default_location = default_location
        self.max_tokens = max_tokens

    def extract(self, batch_markup: str, batch_index: int = 0) -> ExtractionResult:
        """
        Extract records from one batch.

        Decode problems never raise; they yield an empty result. A failing
        completion call raises CompletionError for the caller to handle.
        """
        card_count = count_cards(batch_markup)
        html = truncate_markup(batch_markup, self.max_chars)
        if len(html) < len(batch_markup):
            log.debug(f"Batch {batch_index + 1}: markup truncated {len(batch_markup)} -> {len(html)} chars")

        prompt = build_prompt(html, card_count)

        try:
            response_text = self.client.complete(prompt, max_tokens=self.max_tokens)
        except CompletionError:
            raise
        except Exception as e:
            raise CompletionError(f"Completion call failed: {e}",
                                  provider=getattr(self.client, 'provider', '')) from e

        preview = response_text[:PREVIEW_CHARS]
        log.debug(f"Response preview ({len(preview)} of {len(response_text)} chars): {preview}")

        usage = self.client.get_last_usage()
        if usage:
            log.info(f"Batch {batch_index + 1}: {usage['input_tokens']} input / {usage['output_tokens']} output tokens")

        objects, stage = decode_events(response_text)
        records = self._to_records(objects)

        log.info(f"Batch {batch_index + 1}: {len(records)}/{card_count} events "
                 f"({stage.value if stage else 'no decode'})")
        return ExtractionResult(
            batch_index=batch_index,
            fragment_count=card_count,
            records=records,
            stage=stage if records else None,
        )

    def _to_records(self, objects: List[dict]) -> List[EventRecord]:
        records = []
        for obj in objects:
            record = EventRecord.from_payload(obj, default_location=self.default_location)
            # Single validity gate for LLM-derived records
            if record.is_valid():
                records.append(record)
        return records
