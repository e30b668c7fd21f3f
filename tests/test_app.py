import io
import json
import subprocess
from pathlib import Path
from unittest import mock

import pytest

from clipforge.app import Voice, create_app, main, tts_voices


@pytest.fixture
def client(tmp_path):
    app = create_app(tmp_path)
    app.config["TESTING"] = True
    return app.test_client()


def _completed(args, stdout=b"", stderr=b"", returncode=0):
    return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)


def test_tts_voices_contents():
    voices = tts_voices()
    assert set(voices) == {"en", "es"}
    assert len(voices["en"]) == 10
    assert len(voices["es"]) == 4
    assert Voice("us", "American") in voices["en"]
    assert Voice("mx", "Mexican Spanish") in voices["es"]


def test_voice_ids_unique():
    ids = [v.id for entries in tts_voices().values() for v in entries]
    assert len(ids) == len(set(ids))


def test_index_renders_template(client, tmp_path, monkeypatch):
    (tmp_path / "index").mkdir()
    (tmp_path / "index" / "index.html").write_text(
        "<select>{% for voice in tts_voices['en'] %}"
        '<option value="{{ voice.id }}">{{ voice.name }}</option>{% endfor %}</select>',
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    response = client.get("/")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == (
        '<select><option value="us">American</option></select>'
    )


def test_index_missing_template(client, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert client.get("/").status_code == 404


def test_generate_tts_empty_text(client):
    response = client.post("/generate-tts", json={"text": "   "})
    assert response.status_code == 400
    assert response.get_json() == {"error": "No text provided"}


def test_generate_tts_missing_text(client):
    response = client.post("/generate-tts", json={"voice": "us"})
    assert response.status_code == 400


def test_generate_tts_success(client, tmp_path):
    calls = []

    def fake_run(args, **kwargs):
        calls.append(args)
        Path(args[args.index("-w") + 1]).write_bytes(b"audio")
        return _completed(args)

    with mock.patch("subprocess.run", side_effect=fake_run):
        response = client.post("/generate-tts", json={"text": "hello there", "voice": "co.uk"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["audio"] == f"/download/{body['filename']}"
    assert (tmp_path / body["filename"]).exists()
    assert calls[0][calls[0].index("-v") + 1] == "en-gb"
    assert calls[0][calls[0].index("-s") + 1] == "175"


def test_generate_tts_failure(client):
    with mock.patch("subprocess.run", return_value=_completed([], stderr=b"boom", returncode=1)):
        response = client.post("/generate-tts", json={"text": "hello"})
    assert response.status_code == 500
    assert response.get_json()["error"].startswith("TTS generation failed: ")
    assert "boom" in response.get_json()["error"]


def test_create_video_without_background(client):
    response = client.post(
        "/create-video", data={"audio_filename": "a.mp3"}, content_type="multipart/form-data"
    )
    assert response.status_code == 400
    assert response.get_json() == {"error": "No background file uploaded"}


def test_create_video_without_audio(client):
    response = client.post(
        "/create-video",
        data={"bg_file": (io.BytesIO(b"img"), "bg.png")},
        content_type="multipart/form-data",
    )
    assert response.status_code == 400
    assert response.get_json() == {"error": "No audio reference provided"}


def _video_runner(args, **kwargs):
    if args[0] == "ffprobe":
        return _completed(args, stdout=json.dumps({"format": {"duration": "4.0"}}).encode())
    Path(args[-1]).write_bytes(b"out")
    return _completed(args)


def test_create_video_success(client, tmp_path):
    with mock.patch("subprocess.run", side_effect=_video_runner):
        response = client.post(
            "/create-video",
            data={
                "bg_file": (io.BytesIO(b"img"), "bg.png"),
                "aspect": "9:16",
                "audio_filename": "output_1.mp3",
                "text": "hello world",
            },
            content_type="multipart/form-data",
        )
    assert response.status_code == 200
    body = response.get_json()
    assert body["aspect"] == "9:16"
    assert body["video"].startswith("/download/video_")
    assert body["captions"] == "Generated 1 caption segments"
    assert body["srt_file"].startswith("/download/captions_")
    assert (tmp_path / body["video"].removeprefix("/download/")).exists()


def test_create_video_without_text_omits_captions(client):
    with mock.patch("subprocess.run", side_effect=_video_runner):
        response = client.post(
            "/create-video",
            data={"bg_file": (io.BytesIO(b"vid"), "clip.mp4"), "audio_filename": "a.mp3"},
            content_type="multipart/form-data",
        )
    body = response.get_json()
    assert body["aspect"] == "16:9"
    assert "captions" not in body
    assert "srt_file" not in body


def test_create_video_failure(client):
    with mock.patch("subprocess.run", return_value=_completed([], stderr=b"bad", returncode=1)):
        response = client.post(
            "/create-video",
            data={"bg_file": (io.BytesIO(b"vid"), "clip.mp4"), "audio_filename": "a.mp3"},
            content_type="multipart/form-data",
        )
    assert response.status_code == 500
    body = response.get_json()
    assert body["error"] == f"Video creation failed: {body['ffmpeg_error']}"
    assert "bad" in body["ffmpeg_error"]


def test_download_serves_file(client, tmp_path):
    (tmp_path / "clip.txt").write_bytes(b"contents")
    response = client.get("/download/clip.txt")
    assert response.status_code == 200
    assert response.data == b"contents"


def test_download_listing(client, tmp_path):
    (tmp_path / "clip.txt").write_bytes(b"contents")
    response = client.get("/download/")
    assert "clip.txt" in response.get_data(as_text=True)


def test_download_missing(client):
    assert client.get("/download/none.mp4").status_code == 404


def test_main_creates_upload_dir(tmp_path):
    target = tmp_path / "up"
    with mock.patch("flask.Flask.run") as run:
        assert main(["--upload-dir", str(target), "--port", "9000"]) == 0
    assert target.is_dir()
    assert run.call_args.kwargs == {"host": "0.0.0.0", "port": 9000}