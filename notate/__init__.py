"""notate: transpile plain-text tabs with piano chord annotations to Markdown."""

__version__ = "0.1.0"
