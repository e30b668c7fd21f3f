"""Caption segmentation and SRT generation from narration text."""

from __future__ import annotations

import math
import time
from collections.abc import Iterable, Iterator
from pathlib import Path

_BREAK_PUNCTUATION = (".", "!", "?", ",")
_MIN_WORDS = 4
_MAX_WORDS = 6
_U32_MAX = 2**32 - 1


def _segments(words: Iterable[str]) -> Iterator[list[str]]:
    """Group words into short caption segments of up to six words."""
    current: list[str] = []
    for word in words:
        current.append(word)
        if len(current) >= _MAX_WORDS or (
            len(current) >= _MIN_WORDS and word.endswith(_BREAK_PUNCTUATION)
        ):
            yield current
            current = []
    if current:
        yield current


def generate_captions_from_text(text: str, audio_duration: float) -> tuple[str, str]:
    """Spread the words of ``text`` evenly over ``audio_duration`` seconds.

    Returns the SRT document and a short summary line.
    """
    words = text.split()
    if not words:
        return "", "No text to generate captions"

    if audio_duration == 0:
        words_per_second = math.inf
    else:
        words_per_second = len(words) / audio_duration

    segments = list(_segments(words))
    blocks = []
    word_index = 0
    for number, segment in enumerate(segments, start=1):
        start = word_index / words_per_second
        end = min((word_index + len(segment)) / words_per_second, audio_duration)
        blocks.append(
            f"{number}\n"
            f"{format_time(start)} --> {format_time(end)}\n"
            f"{' '.join(segment).upper()}\n\n"
        )
        word_index += len(segment)

    return "".join(blocks), f"Generated {len(segments)} caption segments"


def _whole(value: float) -> int:
    """Truncate to an unsigned 32-bit count, saturating at the bounds."""
    if math.isnan(value) or value <= 0:
        return 0
    if math.isinf(value):
        return _U32_MAX
    return min(int(value), _U32_MAX)


def _remainder(value: float, divisor: float) -> float:
    if math.isinf(value):
        return math.nan
    return math.fmod(value, divisor)


def format_time(seconds: float) -> str:
    """Format seconds as an SRT timestamp ``HH:MM:SS,mmm``."""
    hours = _whole(seconds / 3600.0)
    minutes = _whole(_remainder(seconds, 3600.0) / 60.0)
    secs = _whole(_remainder(seconds, 60.0))
    millis = _whole(_remainder(seconds, 1.0) * 1000.0)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def save_srt_file(srt_content: str, upload_dir: str | Path) -> str:
    """Write the SRT document into ``upload_dir`` and return its file name."""
    filename = f"captions_{int(time.time())}.srt"
    (Path(upload_dir) / filename).write_text(srt_content, encoding="utf-8")
    return filename