"""Composition of narrated videos from a background clip or image."""

from __future__ import annotations

import contextlib
import json
import subprocess
import time
from pathlib import Path

from clipforge.captions import generate_captions_from_text, save_srt_file

_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp", ".gif", ".webp")

_PORTRAIT_SCALE = (
    "scale=1080:1920:force_original_aspect_ratio=decrease,pad=1080:1920:(ow-iw)/2:(oh-ih)/2"
)
_LANDSCAPE_SCALE = (
    "scale=1920:1080:force_original_aspect_ratio=decrease,pad=1920:1080:(ow-iw)/2:(oh-ih)/2"
)


class VideoError(Exception):
    """Raised when the video could not be produced."""


def sanitize_filename(name: str) -> str:
    """Keep only alphanumerics, dots and underscores."""
    return "".join(c for c in name if c.isalnum() or c in "._")


def is_image_file(name: str) -> bool:
    """Whether the name has a still-image extension."""
    return name.lower().endswith(_IMAGE_EXTENSIONS)


def scale_filter(aspect_ratio: str) -> str:
    """Scale-and-pad filter for portrait (9:16) or landscape output."""
    return _PORTRAIT_SCALE if aspect_ratio == "9:16" else _LANDSCAPE_SCALE


def subtitle_filter(srt_path: str | Path, aspect_ratio: str) -> str:
    """Subtitle burn-in filter with styling sized for the aspect ratio."""
    landscape = aspect_ratio == "16:9"
    font_size = (32 if landscape else 36) * 7 // 10
    margin_v = (40 if landscape else 80) * 7 // 10
    escaped = str(srt_path).replace("\\", "\\\\").replace(":", "\\:")
    return (
        f"subtitles='{escaped}':force_style='Fontsize={font_size},"
        "PrimaryColour=&Hffffff,OutlineColour=&H000000,BackColour=&H80000000,"
        f"Outline=3,Shadow=2,Alignment=2,MarginV={margin_v},Bold=1'"
    )


def parse_duration(probe_output: str | bytes) -> float:
    """Read ``format.duration`` from ffprobe's JSON output."""
    try:
        data = json.loads(probe_output)
    except ValueError as exc:
        raise VideoError(f"Invalid ffprobe output: {exc}") from exc
    try:
        value = data["format"]["duration"]
    except (KeyError, TypeError):
        value = None
    if not isinstance(value, str):
        raise VideoError("Invalid duration format")
    try:
        return float(value)
    except ValueError as exc:
        raise VideoError("Invalid duration format") from exc


def build_video_command(
    bg_path: str | Path,
    audio_path: str | Path,
    output_path: str | Path,
    duration: float,
    is_image: bool,
    filter_complex: str,
) -> list[str]:
    """The full ffmpeg argument list that renders the final video."""
    duration_text = str(duration)
    command = ["ffmpeg", "-y"]
    if is_image:
        command += ["-loop", "1", "-framerate", "30", "-t", duration_text]
    else:
        command += ["-stream_loop", "-1"]
    command += ["-i", str(bg_path), "-i", str(audio_path)]
    if not is_image:
        command += ["-t", duration_text]
    command += ["-filter_complex", filter_complex]
    command += ["-map", "[v]", "-map", "1:a"]
    command += ["-c:v", "libx264", "-preset", "fast", "-c:a", "copy"]
    command += ["-movflags", "+faststart", "-shortest", str(output_path)]
    return command


def _run(args: list[str]) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(args, capture_output=True)
    except OSError as exc:
        raise VideoError(str(exc)) from exc


def _stderr(result: subprocess.CompletedProcess) -> str:
    return (result.stderr or b"").decode("utf-8", errors="replace")


def _captions(
    original_text: str, duration: float, upload_dir: Path
) -> tuple[str | None, str | None, str | None]:
    if not original_text.strip():
        return None, None, None
    content, summary = generate_captions_from_text(original_text, duration)
    if not content:
        return None, None, None
    try:
        filename = save_srt_file(content, upload_dir)
    except OSError:
        return None, None, None
    return content, summary, filename


def process_video(
    bg_file_data: bytes,
    bg_filename: str,
    aspect_ratio: str,
    audio_filename: str,
    original_text: str,
    upload_dir: str | Path,
) -> tuple[str, str | None, str | None]:
    """Render a video from the background and a narration file in ``upload_dir``.

    Returns the output file name, the caption summary and the SRT file name;
    the last two are None when no captions were made.
    """
    upload_dir = Path(upload_dir)
    timestamp = int(time.time())

    bg_path = upload_dir / f"bg_{timestamp}_{sanitize_filename(bg_filename)}"
    bg_path.write_bytes(bg_file_data)

    output_filename = f"video_{timestamp}.mp4"
    output_path = upload_dir / output_filename
    temp_audio = upload_dir / f"converted_{timestamp}.aac"
    audio_path = upload_dir / audio_filename

    conversion = _run(
        ["ffmpeg", "-y", "-i", str(audio_path), "-ar", "44100", "-ac", "2",
         "-c:a", "aac", str(temp_audio)]
    )
    if conversion.returncode != 0:
        raise VideoError(f"Audio conversion failed: {_stderr(conversion)}")

    probe = _run(
        ["ffprobe", "-v", "error", "-show_entries", "format=duration",
         "-of", "json", str(temp_audio)]
    )
    if probe.returncode != 0:
        raise VideoError("Could not determine audio duration")
    duration = parse_duration((probe.stdout or b"").decode("utf-8", errors="replace"))

    srt_content, caption_text, srt_filename = _captions(original_text, duration, upload_dir)

    filter_complex = f"[0:v]{scale_filter(aspect_ratio)}"
    if srt_content is not None:
        srt_path = upload_dir / f"captions_{timestamp}.srt"
        srt_path.write_text(srt_content, encoding="utf-8")
        filter_complex += "," + subtitle_filter(srt_path, aspect_ratio)
    filter_complex += "[v]"

    command = build_video_command(
        bg_path, temp_audio, output_path, duration, is_image_file(bg_filename), filter_complex
    )
    result = _run(command)

    for leftover in (temp_audio, bg_path):
        with contextlib.suppress(OSError):
            leftover.unlink()

    if result.returncode != 0:
        raise VideoError(f"Video creation failed: {_stderr(result)}")
    if not output_path.exists():
        raise VideoError("Output video not generated")

    return output_filename, caption_text, srt_filename