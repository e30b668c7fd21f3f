# clipforge

A small web service for making short narrated videos. Send some text to
have it spoken with a text-to-speech voice, upload a background image or
clip, and get back an MP4 with large, TikTok-style captions burned in.

## Requirements

clipforge drives external tools, which must be on your `PATH`:

- `ffmpeg` and `ffprobe` for audio conversion and video rendering
- `espeak-ng` for speech; `festival` is used if espeak-ng is missing.
  If neither is installed, a silent track of matching length (at least
  two seconds) is produced so the rest of the pipeline still works.

## Installation

```
pip install .
```

## Running the server

```
clipforge
```

By default the server listens on `0.0.0.0:8080` and keeps all generated
files in an `uploads` directory, which it creates if needed. Options:

- `--host` (default `0.0.0.0`)
- `--port` (default `8080`)
- `--upload-dir` (default `uploads`)

## HTTP interface

`GET /` serves the page at `index/index.html`, read from the current
working directory. A few template placeholders in it are filled in with
the American voice. If the file is not there, the reply is 404.

`GET /voices` lists the available voices per language as JSON
(`{"en": [{"id": "us", "name": "American"}, ...], "es": [...]}`).

`POST /generate-tts` takes JSON:

```json
{"text": "Hello there", "lang": "en", "voice": "us", "speed": 1.0}
```

Only `text` is required; `lang` defaults to `en`, `voice` to `us` and
`speed` to `1.0`. The voice id chooses the speaker; `lang` is accepted
but not otherwise used. The reply names the audio file and where to
download it:

```json
{"audio": "/download/output_1700000000.mp3", "filename": "output_1700000000.mp3"}
```

`POST /create-video` takes a multipart form with these fields:

- `bg_file`: background image (jpg, jpeg, png, bmp, gif, webp) or video
- `audio_filename`: the `filename` returned by `/generate-tts`
- `aspect`: `16:9` (default) or `9:16`; anything other than `9:16` gives
  1920x1080 output
- `text`: optional; when present, captions are generated from it

The reply holds the download path of the video and the aspect ratio,
and, when captions were made, a `captions` summary and the `srt_file`
download path.

`GET /download/` lists the files in the uploads directory, and
`GET /download/<name>` serves one of them.

Errors come back as JSON with an `error` field and a 400 or 500 status;
a failed video render also carries an `ffmpeg_error` field.

## Using the pieces directly

```python
from clipforge.captions import generate_captions_from_text, format_time

srt, summary = generate_captions_from_text("One two three four. Five six.", 4.0)
print(summary)            # Generated 2 caption segments
print(format_time(61.5))  # 00:01:01,500
```

- `clipforge.captions`: caption segmentation, SRT timestamps, and
  `save_srt_file(srt_content, upload_dir)`.
- `clipforge.tts`: `generate_tts_audio(text, lang, voice, speed, upload_dir)`
  returns the path and file name of the MP3 and raises `TtsError` on
  failure; `espeak_voice`, `words_per_minute` and `fallback_duration`
  expose the voice mapping and timing rules.
- `clipforge.video`: `process_video(...)` renders the final video and
  raises `VideoError` on failure; `build_video_command`, `scale_filter`,
  `subtitle_filter`, `parse_duration`, `is_image_file` and
  `sanitize_filename` are the building blocks it uses.
- `clipforge.app`: `tts_voices()` lists the voices, and
  `create_app(upload_dir)` builds the Flask application if you would
  rather serve it yourself.

## What is not included

The package does not ship the web page itself. `GET /` only serves
`index/index.html` if you provide one in the directory the server is
started from; the JSON endpoints work without it.