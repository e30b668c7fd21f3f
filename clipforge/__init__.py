"""Turn text into narrated videos with burned-in captions, served over HTTP."""

__version__ = "0.1.0"