from src.models.user import User
from src.models.profile import Profile
from src.models.flashcard import Flashcard, FlashcardSource
from src.models.generation_session import GenerationSession, GenerationStatus

__all__ = [
    "User",
    "Profile",
    "Flashcard",
    "FlashcardSource",
    "GenerationSession",
    "GenerationStatus",
]
