"""Result permalink encoding/decoding.

A score report is packed into short-keyed JSON, base64url-encoded
without padding, and followed by a keyed checksum::

    <payload>.<signature>

The signature is a dual FNV-1a hash. It only deters casual edits to a
shared link; the key ships with the client, so it is not an integrity
guarantee. Tokens without a signature segment are still accepted.
"""

from __future__ import annotations

import base64
import json
import time
from typing import Any, Dict, Optional

from .config import get_settings
from .models.schemas import (
    CategoryResult,
    DifficultyBreakdown,
    ScoreReport,
    SharedReport,
    TierTally,
)

_SEPARATOR = "."
_MASK32 = 0xFFFFFFFF
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def compute_signature(data: str, secret: Optional[str] = None) -> str:
    """Dual 32-bit FNV-1a over ``secret:data``, rendered base-36."""
    if secret is None:
        secret = get_settings().permalink_secret
    text = f"{secret}:{data}"
    h1 = 0x811C9DC5
    h2 = 0x050C5D1F
    for code_unit in _utf16_units(text):
        h1 = ((h1 ^ code_unit) * 0x01000193) & _MASK32
        h2 = ((h2 ^ code_unit) * 0x100001B3) & _MASK32
    return _to_base36(h1) + _to_base36(h2)


def _utf16_units(text: str):
    raw = text.encode("utf-16-le")
    for i in range(0, len(raw), 2):
        yield raw[i] | (raw[i + 1] << 8)


def _b64url_encode(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    return base64.b64decode(padded, altchars=b"-_", validate=True).decode("utf-8")


def _compact(report: ScoreReport, shared_at: int) -> Dict[str, Any]:
    return {
        "i": report.iq_score,
        "p": report.percentile,
        "c": report.classification,
        "d": report.classification_descriptor,
        "r": report.raw_score,
        "t": report.total_questions,
        "w": report.weighted_score,
        "m": report.max_weighted_score,
        "k": [
            [cat.key, cat.correct, cat.total, cat.percentage, cat.label]
            for cat in report.categories
        ],
        "b": report.difficulty_breakdown.as_flat(),
        "tt": report.total_time_ms,
        "at": report.avg_time_per_question_ms,
        "ft": report.fastest_question_ms,
        "st": report.slowest_question_ms,
        "ts": shared_at,
    }


def _expand(compact: Dict[str, Any]) -> ScoreReport:
    b = compact["b"]
    if not isinstance(b, list) or len(b) != 6:
        raise ValueError("difficulty breakdown must hold six numbers")
    return ScoreReport(
        iq_score=compact["i"],
        percentile=compact["p"],
        classification=compact["c"],
        classification_descriptor=compact["d"],
        raw_score=compact["r"],
        total_questions=compact["t"],
        weighted_score=compact["w"],
        max_weighted_score=compact["m"],
        categories=[
            CategoryResult(key=key, correct=correct, total=total, percentage=pct, label=label)
            for key, correct, total, pct, label in compact["k"]
        ],
        difficulty_breakdown=DifficultyBreakdown(
            easy=TierTally(correct=b[0], total=b[1]),
            medium=TierTally(correct=b[2], total=b[3]),
            hard=TierTally(correct=b[4], total=b[5]),
        ),
        total_time_ms=compact["tt"],
        avg_time_per_question_ms=compact["at"],
        fastest_question_ms=compact["ft"],
        slowest_question_ms=compact["st"],
    )


def encode_results(
    report: ScoreReport,
    signed: bool = True,
    shared_at: Optional[int] = None,
    secret: Optional[str] = None,
) -> str:
    """Encode *report* into a URL-safe token."""
    if shared_at is None:
        shared_at = int(time.time() * 1000)
    text = json.dumps(
        _compact(report, shared_at), separators=(",", ":"), ensure_ascii=False
    )
    encoded = _b64url_encode(text)
    if not signed:
        return encoded
    return encoded + _SEPARATOR + compute_signature(encoded, secret)


def decode_results(token: str, secret: Optional[str] = None) -> Optional[SharedReport]:
    """Decode a permalink token; returns None for anything invalid or tampered.

    Deeply nested payloads make ``json.loads`` raise ``RecursionError``,
    which is caught here as well.
    """
    if not isinstance(token, str) or not token:
        return None

    try:
        data = token
        verified = False
        dot = token.rfind(_SEPARATOR)
        if dot > 0:
            payload, signature = token[:dot], token[dot + 1:]
            if signature != compute_signature(payload, secret):
                return None
            data = payload
            verified = True

        compact = json.loads(_b64url_decode(data))
        if not isinstance(compact, dict):
            return None
        if not _is_number(compact.get("i")) or not _is_number(compact.get("p")):
            return None
        report = _expand(compact)
        shared_at = compact.get("ts")
        return SharedReport(
            report=report,
            shared_at=shared_at if _is_number(shared_at) else None,
            verified=verified,
        )
    except (ValueError, KeyError, TypeError, RecursionError):
        return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def generate_permalink(
    report: ScoreReport,
    base_url: Optional[str] = None,
    shared_at: Optional[int] = None,
) -> str:
    """Full results URL with the encoded report as its last path segment."""
    base = (base_url or get_settings().public_base_url).rstrip("/")
    return f"{base}/results/{encode_results(report, shared_at=shared_at)}"
