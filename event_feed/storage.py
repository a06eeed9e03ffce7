"""
Artifact storage.

Writes the final feed as a pretty-printed JSON array. Writes go through a
temp file and os.replace so a failed write leaves the previous artifact
intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, List, Sequence, Union

from .logger import get_logger
from .models import EventRecord, RunArtifact

log = get_logger('storage')


def _atomic_write(file_path: Path, data: Any):
    """
    Write JSON data atomically using temp file + rename

    Args:
        file_path: Target file path
        data: Data to write (will be JSON serialized)
    """
    temp_fd, temp_path = tempfile.mkstemp(
        dir=file_path.parent,
        prefix='.tmp_',
        suffix='.json'
    )

    try:
        with os.fdopen(temp_fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write('\n')

        os.replace(temp_path, file_path)

    except Exception:
        # Clean up temp file on error
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def write_artifact(records: Sequence[EventRecord], path: Union[str, Path]) -> RunArtifact:
    """Replace the artifact at `path` with `records`."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    artifact = RunArtifact(path=str(file_path), records=list(records))
    _atomic_write(file_path, artifact.to_json_ready())

    log.info(f"JSON saved to {file_path} ({len(artifact.records)} events)")
    return artifact


def save_fragments(fragments: Sequence[str], path: Union[str, Path]) -> Path:
    """Dump harvested fragments so a run can be replayed offline."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write(file_path, list(fragments))
    log.info(f"Saved {len(fragments)} fragments to {file_path}")
    return file_path


def load_fragments(path: Union[str, Path]) -> List[str]:
    """Load fragments written by save_fragments."""
    with open(path, encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ValueError(f"{path} does not contain a JSON array of strings")
    return data
