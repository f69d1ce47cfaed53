"""Canvas Search: describe-and-find semantic search over canvas projects."""

__version__ = "0.1.0"
