"""Text and embedding helpers shared across the core.

Text handling contract
----------------------
* User input and stored knowledge text have BOM markers stripped and
  whitespace normalized before it reaches a provider.
* Question text used as a saved-answer key is normalized more aggressively
  (case-folded, single-spaced) so cosmetic edits by an administrator do not
  orphan a citizen's saved answers.
* Embeddings are persisted as a flat JSON array of numbers.
"""

import json
import re
import unicodedata
from typing import Any

_HORIZONTAL_WS = re.compile(r"[ \t\f\v]+")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_ANY_WS = re.compile(r"\s+")


def normalize_text(text: Any) -> str:
    """Strip BOMs, apply NFKC and normalize whitespace, keeping paragraph breaks."""
    if not text:
        return ""

    cleaned = str(text).replace("\ufeff", "").replace("\ufffd", "")
    cleaned = unicodedata.normalize("NFKC", cleaned)
    cleaned = cleaned.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _HORIZONTAL_WS.sub(" ", cleaned)
    cleaned = "\n".join(line.strip() for line in cleaned.split("\n"))
    cleaned = _EXCESS_NEWLINES.sub("\n\n", cleaned)
    return cleaned.strip()


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) into a single space."""
    return _ANY_WS.sub(" ", text or "").strip()


def normalize_question_text(question: str) -> str:
    """Key used to store a saved eligibility answer."""
    return collapse_whitespace(normalize_text(question)).casefold()


def serialize_embedding(embedding: list[float]) -> str:
    """Serialize an embedding vector as a JSON array string."""
    return json.dumps([float(value) for value in embedding])


def deserialize_embedding(raw: str | list[float] | None) -> list[float] | None:
    """Parse a stored embedding.

    Returns None for a missing value. Raises ValueError (or TypeError) when the
    text is not a flat JSON array of numbers.
    """
    if raw is None:
        return None
    values = json.loads(raw) if isinstance(raw, str) else raw
    if not isinstance(values, list):
        raise ValueError("Embedding must be a JSON array")
    return [float(value) for value in values]
