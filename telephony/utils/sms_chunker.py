"""SMS segmentation aware of GSM-7 and UCS-2 encoding limits.

GSM-7: 160 chars in a single SMS, 153 per part of a multi-part SMS.
UCS-2: 70 chars in a single SMS, 67 per part of a multi-part SMS.
Multi-part SMS lose capacity to the concatenation header carriers add.

Characters are counted by Unicode code point, so an emoji occupies one
UCS-2 slot here even though carriers encode astral characters as a
surrogate pair.
"""

from __future__ import annotations

from typing import List

from telephony.types import ChunkMode, ChunkOptions

GSM7_SINGLE_LIMIT = 160
GSM7_MULTI_LIMIT = 153
UCS2_SINGLE_LIMIT = 70
UCS2_MULTI_LIMIT = 67

ELLIPSIS = "…"

# Numbering is dropped when the prefix would leave less than this per segment
MIN_NUMBERED_SEGMENT = 20

# Split at a space or newline only past this fraction of the candidate segment
WORD_BOUNDARY_MIN_RATIO = 0.3

GSM7_BASIC = frozenset(
    "@£$¥èéùìòÇ\nØø\rÅåΔ_ΦΓΛΩΠΨΣΘΞ ÆæßÉ"
    " !\"#¤%&'()*+,-./0123456789:;<=>?"
    "¡ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "ÄÖÑÜabcdefghijklmnopqrstuvwxyz"
    "äöñüà§"
)

# Sent behind an escape character, so each costs two slots
GSM7_EXTENDED = frozenset("|^€{}[]~\\")


def is_gsm7(text: str) -> bool:
    """Return True when every character of `text` is GSM-7 encodable."""
    return all(ch in GSM7_BASIC or ch in GSM7_EXTENDED for ch in text)


def gsm7_length(text: str) -> int:
    """Count GSM-7 slots used by `text`; extended characters take two."""
    return sum(2 if ch in GSM7_EXTENDED else 1 for ch in text)


def _effective_length(text: str, gsm7: bool) -> int:
    return gsm7_length(text) if gsm7 else len(text)


def _fit_index(text: str, limit: int, gsm7: bool) -> int:
    """Length of the longest prefix of `text` that fits in `limit` slots."""
    if not gsm7:
        return min(limit, len(text))
    used = 0
    for idx, ch in enumerate(text):
        cost = 2 if ch in GSM7_EXTENDED else 1
        if used + cost > limit:
            return idx
        used += cost
    return len(text)


def _truncate_to_limit(text: str, limit: int, gsm7: bool) -> str:
    return text[: _fit_index(text, limit - 1, gsm7)] + ELLIPSIS


def _find_split_point(text: str, limit: int, gsm7: bool) -> int:
    max_idx = _fit_index(text, limit, gsm7)
    region = text[:max_idx]
    boundary = max(region.rfind(" "), region.rfind("\n"))
    if boundary > max_idx * WORD_BOUNDARY_MIN_RATIO:
        return boundary + 1
    return max_idx


def _split_into_segments(text: str, limit: int, gsm7: bool) -> List[str]:
    segments: List[str] = []
    remaining = text
    while remaining:
        if _effective_length(remaining, gsm7) <= limit:
            segments.append(remaining)
            break
        split_at = _find_split_point(remaining, limit, gsm7)
        segments.append(remaining[:split_at].rstrip())
        remaining = remaining[split_at:].lstrip()
    return segments


def numbering_overhead(segment_count: int) -> int:
    """Characters reserved for a "[i/n] " prefix when there are `segment_count` parts."""
    digits = len(str(segment_count))
    return 2 + digits + 1 + digits + 2


def _number_segments(text: str, base_limit: int, gsm7: bool, estimated_count: int) -> List[str]:
    # The prefix width depends on the final count, so re-split once with the
    # overhead implied by the unnumbered estimate.
    limit = base_limit - numbering_overhead(estimated_count)
    if limit < MIN_NUMBERED_SEGMENT:
        return _split_into_segments(text, base_limit, gsm7)

    raw = _split_into_segments(text, limit, gsm7)
    total = len(raw)
    return [f"[{i}/{total}] {segment}" for i, segment in enumerate(raw, start=1)]


def chunk_sms(text: str, options: ChunkOptions) -> List[str]:
    """Split `text` into SMS-sized segments.

    Steps:
    - truncate to `options.max_length` characters plus an ellipsis
    - classify the whole message as GSM-7 or UCS-2
    - return it unchanged when it fits in a single SMS
    - in SINGLE mode, truncate to one SMS; otherwise split into parts,
      preferring word boundaries
    - optionally prefix each part with "[i/n] "

    Example:
        >>> from telephony.types import ChunkOptions
        >>> chunk_sms("Hello", ChunkOptions())
        ['Hello']
        >>> len(chunk_sms("A" * 320, ChunkOptions()))
        3
    """
    if not text:
        return []

    if len(text) > options.max_length:
        text = text[: options.max_length] + ELLIPSIS

    gsm7 = is_gsm7(text)
    single_limit = GSM7_SINGLE_LIMIT if gsm7 else UCS2_SINGLE_LIMIT
    multi_limit = GSM7_MULTI_LIMIT if gsm7 else UCS2_MULTI_LIMIT

    if _effective_length(text, gsm7) <= single_limit:
        return [text]

    if options.mode == ChunkMode.SINGLE:
        return [_truncate_to_limit(text, single_limit, gsm7)]

    segments = _split_into_segments(text, multi_limit, gsm7)
    if not options.segment_numbering or len(segments) <= 1:
        return segments

    return _number_segments(text, multi_limit, gsm7, len(segments))


def chunk_sms_for_outbound(text: str, max_length: int) -> List[str]:
    """Chunk a reply for sending: auto mode with segment numbering."""
    return chunk_sms(
        text,
        ChunkOptions(mode=ChunkMode.AUTO, max_length=max_length, segment_numbering=True),
    )
