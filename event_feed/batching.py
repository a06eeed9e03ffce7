"""
Fragment batching.

Groups harvested card fragments into fixed-size batches so each completion
request stays within context and rate limits. Fragments inside a batch are
joined with a sentinel comment so later stages can split them back apart.
"""

from typing import List, Sequence

from .models import Batch, BATCH_JOINER, CARD_SEPARATOR

DEFAULT_BATCH_SIZE = 3


def batch_fragments(fragments: Sequence[str], size: int = DEFAULT_BATCH_SIZE) -> List[Batch]:
    """
    Partition fragments into consecutive batches of at most `size`.

    Order is preserved and every fragment lands in exactly one batch; only
    the last batch may be short.
    """
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}")

    return [
        Batch(index=i // size, fragments=list(fragments[i:i + size]))
        for i in range(0, len(fragments), size)
    ]


def join_fragments(fragments: Sequence[str]) -> str:
    """Join fragments with the card separator."""
    return BATCH_JOINER.join(fragments)


def split_markup(markup: str) -> List[str]:
    """Split joined markup back into fragments (whole input if no separator)."""
    if CARD_SEPARATOR not in markup:
        return [markup]
    return markup.split(CARD_SEPARATOR)


def count_cards(markup: str) -> int:
    """Number of cards in joined markup."""
    return markup.count(CARD_SEPARATOR) + 1
