"""reqcraft - HTTP client with per-project request templates and variables."""

__version__ = "0.3.0"
