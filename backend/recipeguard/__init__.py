"""recipeguard — validate-and-repair pipeline for generated recipes."""

__version__ = "1.0.0"
