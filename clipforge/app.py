"""HTTP front end: narration, video rendering and downloads."""

from __future__ import annotations

import argparse
import html
import logging
import math
from dataclasses import asdict, dataclass
from pathlib import Path

from flask import Flask, Response, abort, jsonify, request, send_from_directory

from clipforge.tts import generate_tts_audio
from clipforge.video import process_video

log = logging.getLogger(__name__)

INDEX_TEMPLATE = Path("index") / "index.html"

_TEMPLATE_REPLACEMENTS = (
    ("{% for voice in tts_voices['en'] %}", ""),
    ("{{ voice.id }}", "us"),
    ("{{ voice.name }}", "American"),
    ("{% endfor %}", ""),
)


@dataclass(frozen=True)
class Voice:
    """A selectable narration voice."""

    id: str
    name: str


def tts_voices() -> dict[str, list[Voice]]:
    """The voices offered for each language."""
    return {
        "en": [
            Voice("com.au", "Australian"),
            Voice("co.uk", "British"),
            Voice("us", "American"),
            Voice("ca", "Canadian"),
            Voice("ind", "Indian"),
            Voice("za", "South African"),
            Voice("ie", "Irish"),
            Voice("nz", "New Zealand"),
            Voice("ng", "Nigerian"),
            Voice("tt", "Trinidad & Tobago"),
        ],
        "es": [
            Voice("es", "Spanish (Spain)"),
            Voice("mx", "Mexican Spanish"),
            Voice("ar", "Argentinian Spanish"),
            Voice("cl", "Chilean Spanish"),
        ],
    }


def _render_index(template: str) -> str:
    for placeholder, value in _TEMPLATE_REPLACEMENTS:
        template = template.replace(placeholder, value)
    return template


def _error(message: str, status: int, ffmpeg_error: str | None = None):
    body = {"error": message}
    if ffmpeg_error is not None:
        body["ffmpeg_error"] = ffmpeg_error
    return jsonify(body), status


def _optional_str(payload: dict, key: str, default: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return default
    return value if isinstance(value, str) else None


def _speed(payload: dict) -> float | None:
    value = payload.get("speed")
    if value is None:
        return 1.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _listing(upload_dir: Path) -> str:
    entries = sorted(p.name for p in upload_dir.iterdir()) if upload_dir.is_dir() else []
    items = "".join(
        f'<li><a href="/download/{html.escape(name)}">{html.escape(name)}</a></li>'
        for name in entries
    )
    return (
        "<html><head><title>Index of /download/</title></head><body>"
        f"<h1>Index of /download/</h1><ul>{items}</ul></body></html>"
    )


def create_app(upload_dir: str | Path) -> Flask:
    """Build the web application serving files from ``upload_dir``."""
    upload_dir = Path(upload_dir)
    app = Flask(__name__)
    app.config["UPLOAD_DIR"] = upload_dir

    @app.get("/")
    def index():
        try:
            template = INDEX_TEMPLATE.read_text(encoding="utf-8")
        except OSError:
            abort(404)
        return Response(_render_index(template), mimetype="text/html")

    @app.post("/generate-tts")
    def generate_tts():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict) or not isinstance(payload.get("text"), str):
            return _error("Invalid request body", 400)
        lang = _optional_str(payload, "lang", "en")
        voice = _optional_str(payload, "voice", "us")
        speed = _speed(payload)
        if lang is None or voice is None or speed is None or math.isnan(speed):
            return _error("Invalid request body", 400)

        text = payload["text"]
        if not text.strip():
            return _error("No text provided", 400)

        try:
            _path, filename = generate_tts_audio(text, lang, voice, speed, upload_dir)
        except Exception as exc:  # any failure is reported to the client
            log.error("TTS generation failed: %s", exc)
            return _error(f"TTS generation failed: {exc}", 500)

        return jsonify({"audio": f"/download/{filename}", "filename": filename})

    @app.post("/create-video")
    def create_video():
        upload = request.files.get("bg_file")
        bg_data = upload.read() if upload is not None else b""
        bg_filename = (upload.filename if upload is not None else None) or "unknown"
        aspect_ratio = request.form.get("aspect", "16:9")
        audio_filename = request.form.get("audio_filename", "")
        original_text = request.form.get("text", "")

        if not bg_data:
            return _error("No background file uploaded", 400)
        if not audio_filename:
            return _error("No audio reference provided", 400)

        try:
            video_filename, caption_text, srt_filename = process_video(
                bg_data, bg_filename, aspect_ratio, audio_filename, original_text, upload_dir
            )
        except Exception as exc:  # any failure is reported to the client
            log.error("Video creation failed: %s", exc)
            return _error(f"Video creation failed: {exc}", 500, ffmpeg_error=str(exc))

        body = {"video": f"/download/{video_filename}", "aspect": aspect_ratio}
        if caption_text is not None:
            body["captions"] = caption_text
        if srt_filename is not None:
            body["srt_file"] = f"/download/{srt_filename}"
        return jsonify(body)

    @app.get("/download/")
    def download_listing():
        return Response(_listing(upload_dir), mimetype="text/html")

    @app.get("/download/<path:filename>")
    def download(filename: str):
        return send_from_directory(upload_dir.resolve(), filename)

    @app.get("/voices")
    def voices():
        return jsonify(
            {lang: [asdict(v) for v in entries] for lang, entries in tts_voices().items()}
        )

    return app


def main(argv: list[str] | None = None) -> int:
    """Start the web server."""
    parser = argparse.ArgumentParser(description="Narrated video maker web server.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--upload-dir", default="uploads")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    upload_dir = Path(args.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    log.info("Starting Reddit Video Maker on %s:%d", args.host, args.port)
    create_app(upload_dir).run(host=args.host, port=args.port)
    return 0