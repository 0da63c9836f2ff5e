"""Thai vocabulary flashcards with audio playback and package export."""

__version__ = "0.1.0"
