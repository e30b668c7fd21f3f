[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "clipforge"
version = "0.1.0"
description = "Web service that turns text into narrated short videos with burned-in captions"
requires-python = ">=3.10"
keywords = ["video", "tts", "captions", "srt", "ffmpeg", "flask"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video :: Conversion",
]
dependencies = [
    "flask",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
clipforge = "clipforge.app:main"

[tool.hatch.build.targets.wheel]
packages = ["clipforge"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
