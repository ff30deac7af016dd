"""groupdigest: summarize large group-chat exports within provider rate limits."""

__version__ = "0.1.0"
