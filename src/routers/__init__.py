"""Router modules for the FlashDeck API."""

from . import auth, flashcards, generate, ping, profile, sessions

__all__ = ["auth", "flashcards", "generate", "ping", "profile", "sessions"]
