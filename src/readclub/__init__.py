"""readclub: client-side state for a social reading app."""

__version__ = "0.1.0"
