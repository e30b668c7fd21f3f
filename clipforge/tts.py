"""Text-to-speech audio generation through system speech engines."""

from __future__ import annotations

import contextlib
import logging
import math
import subprocess
import time
from pathlib import Path

log = logging.getLogger(__name__)

_BASE_WPM = 175
_MIN_FALLBACK_SECONDS = 2.0

_ESPEAK_VOICES = {
    "com.au": "en-au",
    "co.uk": "en-gb",
    "us": "en-us",
    "ca": "en-ca",
    "ind": "en-in",
    "za": "en-za",
    "ie": "en-ie",
    "nz": "en-nz",
    "ng": "en-ng",
    "tt": "en-tt",
    "es": "es",
    "mx": "es-mx",
    "ar": "es-ar",
    "cl": "es-cl",
}


class TtsError(Exception):
    """Raised when no speech audio could be produced."""


def espeak_voice(voice: str) -> str:
    """Map a voice id to an espeak-ng voice name, defaulting to American English."""
    return _ESPEAK_VOICES.get(voice, "en-us")


def words_per_minute(speed: float) -> int:
    """Speaking rate for a speed multiplier, relative to 175 words per minute."""
    rate = _BASE_WPM * speed
    if math.isnan(rate) or rate <= 0:
        return 0
    if math.isinf(rate):
        return 2**32 - 1
    return int(rate)


def fallback_duration(text: str, speed: float) -> float:
    """Seconds of silence standing in for ``text`` read at ``speed``; at least two."""
    words = len(text.split())
    rate = _BASE_WPM * speed
    if rate == 0:
        duration = math.nan if words == 0 else math.inf
    else:
        duration = words / rate * 60.0
    if math.isnan(duration):
        return _MIN_FALLBACK_SECONDS
    return max(duration, _MIN_FALLBACK_SECONDS)


def _stderr(result: subprocess.CompletedProcess) -> str:
    return (result.stderr or b"").decode("utf-8", errors="replace")


def _generate_fallback_audio(text: str, audio_path: Path, speed: float) -> tuple[str, str]:
    duration = fallback_duration(text, speed)
    try:
        result = subprocess.run(
            [
                "ffmpeg",
                "-y",
                "-f", "lavfi",
                "-i", "anullsrc=channel_layout=stereo:sample_rate=44100",
                "-t", str(duration),
                "-codec:a", "libmp3lame",
                "-b:a", "128k",
                str(audio_path),
            ],
            capture_output=True,
        )
    except OSError as exc:
        raise TtsError(str(exc)) from exc

    if result.returncode != 0:
        raise TtsError(f"Fallback audio generation failed: {_stderr(result)}")

    log.warning("Generated fallback silent audio. Install espeak-ng or festival for actual TTS.")
    return str(audio_path), audio_path.name


def _festival(text: str, audio_path: Path, upload_dir: Path, timestamp: int) -> tuple[str, str] | None:
    """Synthesize with festival; returns a result only when falling back to silence."""
    try:
        result = subprocess.run(
            ["festival", "--tts"],
            input=text.encode("utf-8"),
            capture_output=True,
        )
    except OSError:
        return None

    if result.returncode != 0:
        raise TtsError("Festival TTS also failed. No TTS engine available.")

    temp_wav = upload_dir / f"temp_{timestamp}.wav"
    temp_wav.write_bytes(result.stdout or b"")
    try:
        conversion = subprocess.run(
            [
                "ffmpeg",
                "-y",
                "-i", str(temp_wav),
                "-codec:a", "libmp3lame",
                "-b:a", "128k",
                str(audio_path),
            ],
            capture_output=True,
        )
    except OSError as exc:
        raise TtsError(str(exc)) from exc
    finally:
        with contextlib.suppress(OSError):
            temp_wav.unlink()

    if conversion.returncode != 0:
        raise TtsError(f"FFmpeg conversion failed: {_stderr(conversion)}")
    return str(audio_path), audio_path.name


def generate_tts_audio(
    text: str,
    lang: str,
    voice: str,
    speed: float,
    upload_dir: str | Path,
) -> tuple[str, str]:
    """Speak ``text`` into an MP3 in ``upload_dir``; returns (path, file name).

    Tries espeak-ng, then festival, and finally writes silence of a matching
    length when neither engine is installed. ``lang`` is accepted for the
    request shape; the voice id alone selects the speaker.
    """
    upload_dir = Path(upload_dir)
    timestamp = int(time.time())
    filename = f"output_{timestamp}.mp3"
    audio_path = upload_dir / filename

    try:
        result = subprocess.run(
            [
                "espeak-ng",
                "-v", espeak_voice(voice),
                "-s", str(words_per_minute(speed)),
                "-w", str(audio_path),
                text,
            ],
            capture_output=True,
        )
    except OSError:
        if _festival(text, audio_path, upload_dir, timestamp) is None:
            return _generate_fallback_audio(text, audio_path, speed)
    else:
        if result.returncode != 0:
            raise TtsError(f"espeak-ng TTS failed: {_stderr(result)}")

    if not audio_path.exists():
        raise TtsError("Audio file was not generated")

    return str(audio_path), filename