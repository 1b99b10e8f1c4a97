from .config import settings
from .database import Database
from .registry import ControllerRegistry
from .vocabulary import VocabularyManager

db = Database()
vocab_manager = VocabularyManager(f"{settings.VOCAB_DIR}")
controllers = ControllerRegistry(db)


# --- Dependencies ---
def get_vocab_manager() -> VocabularyManager:
    return vocab_manager


def get_controllers() -> ControllerRegistry:
    return controllers
