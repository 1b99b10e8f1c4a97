import logging
import random
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

from .config import settings
from .errors import UngradeableItem
from .models import (
    Item,
    MultipleChoiceQuestion,
    MultipleChoiceType,
    QuizMode,
    TextInputQuestion,
    TextInputType,
)

logger = logging.getLogger(__name__)


def is_blank(value: str) -> bool:
    return not value or not value.strip()


def answers_match(user_answer: str, correct_answer: str) -> bool:
    """Case-insensitive comparison after trimming surrounding whitespace."""
    return user_answer.strip().lower() == correct_answer.strip().lower()


# --- Strategy Pattern: Quiz Generators ---
class QuizGenerator(ABC):
    """Abstract Base Class for the question strategies of each quiz mode."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    @abstractmethod
    def generate(self, item: Item, pool: Sequence[Item], forced_type=None):
        pass

    def generate_all(self, items: Sequence[Item], pool: Sequence[Item]) -> list:
        """Builds one question per item, skipping items that cannot be asked.

        The result can be shorter than ``items``.
        """
        questions = []
        for item in items:
            question = self.generate(item, pool)
            if question is not None:
                questions.append(question)
        if len(questions) < len(items):
            logger.info(f"Skipped {len(items) - len(questions)} of {len(items)} items")
        return questions

    def _pick_type(self, eligible: list, forced_type):
        if not eligible:
            raise UngradeableItem("item has neither a reading nor a meaning")
        if forced_type is not None:
            if forced_type not in eligible:
                raise UngradeableItem(f"item cannot be asked as {forced_type.value}")
            return forced_type
        return self.rng.choice(eligible)


class MultipleChoiceGenerator(QuizGenerator):
    def __init__(self, rng: Optional[random.Random] = None, max_options: Optional[int] = None):
        super().__init__(rng)
        self.max_options = settings.MAX_OPTIONS if max_options is None else max_options
        if self.max_options < 2:
            raise ValueError(f"max_options must be at least 2, got {self.max_options}")

    def eligible_types(self, item: Item) -> List[MultipleChoiceType]:
        types = list(MultipleChoiceType)
        if is_blank(item.reading):
            types.remove(MultipleChoiceType.ITEM_TO_READING)
        if is_blank(item.meaning):
            types.remove(MultipleChoiceType.ITEM_TO_MEANING)
            types.remove(MultipleChoiceType.MEANING_TO_ITEM)
        return types

    def generate(
        self,
        item: Item,
        pool: Sequence[Item],
        forced_type: Optional[MultipleChoiceType] = None,
    ) -> Optional[MultipleChoiceQuestion]:
        """Builds a question for ``item`` with distractors drawn from ``pool``.

        A randomly picked type without distractors falls back to the item's
        other eligible types, so whether an item is asked at all depends only
        on the pool. A forced type is tried alone.
        """
        eligible = self.eligible_types(item)
        try:
            question_type = self._pick_type(eligible, forced_type)
        except UngradeableItem as e:
            logger.debug(f"Item {item.id} ({item.prompt}): {e}")
            return None

        attempts = [question_type]
        if forced_type is None:
            fallbacks = [t for t in eligible if t is not question_type]
            self.rng.shuffle(fallbacks)
            attempts += fallbacks

        for attempt in attempts:
            question = self._build(item, pool, attempt)
            if question is not None:
                return question
        return None

    def _build(
        self, item: Item, pool: Sequence[Item], question_type: MultipleChoiceType
    ) -> Optional[MultipleChoiceQuestion]:
        extract: Callable[[Item], str]
        if question_type is MultipleChoiceType.ITEM_TO_MEANING:
            prompt_text = f'What is the meaning of "{item.prompt}"?'
            correct_answer = item.meaning
            extract = lambda other: other.meaning  # noqa: E731
        elif question_type is MultipleChoiceType.MEANING_TO_ITEM:
            prompt_text = f'Which kanji means "{item.meaning}"?'
            correct_answer = item.prompt
            extract = lambda other: other.prompt  # noqa: E731
        else:
            prompt_text = f'How is "{item.prompt}" read?'
            correct_answer = item.reading
            extract = lambda other: other.reading  # noqa: E731

        options = [correct_answer]
        candidates = [
            other
            for other in pool
            if other.id != item.id
            and extract(other) != correct_answer
            and not is_blank(extract(other))
        ]
        self.rng.shuffle(candidates)
        for other in candidates:
            if len(options) >= self.max_options:
                break
            value = extract(other)
            if value not in options:
                options.append(value)

        if len(options) < 2:
            logger.debug(f"No distractors for item {item.id} as {question_type.value}")
            return None

        self.rng.shuffle(options)
        if correct_answer not in options:
            return None

        return MultipleChoiceQuestion(
            source_item=item,
            prompt_text=prompt_text,
            options=options,
            correct_option_index=options.index(correct_answer),
            question_type=question_type,
        )


class TextInputGenerator(QuizGenerator):
    def eligible_types(self, item: Item) -> List[TextInputType]:
        types = list(TextInputType)
        if is_blank(item.reading):
            types.remove(TextInputType.ITEM_TO_READING_INPUT)
        if is_blank(item.meaning):
            types.remove(TextInputType.ITEM_TO_MEANING_INPUT)
        return types

    def generate(
        self,
        item: Item,
        pool: Sequence[Item] = (),
        forced_type: Optional[TextInputType] = None,
    ) -> Optional[TextInputQuestion]:
        try:
            question_type = self._pick_type(self.eligible_types(item), forced_type)
        except UngradeableItem as e:
            logger.debug(f"Item {item.id} ({item.prompt}): {e}")
            return None

        if question_type is TextInputType.ITEM_TO_READING_INPUT:
            prompt_text = f'Type the reading (hiragana/katakana) of "{item.prompt}"'
            correct_answer = item.reading
        else:
            prompt_text = f'Type the meaning of "{item.prompt}"'
            correct_answer = item.meaning

        return TextInputQuestion(
            source_item=item,
            prompt_text=prompt_text,
            correct_answer_text=correct_answer,
            question_type=question_type,
        )


class QuizFactory:
    """Factory to select the generator for a quiz mode."""

    @staticmethod
    def create(mode: QuizMode, rng: Optional[random.Random] = None) -> QuizGenerator:
        if mode is QuizMode.TEXT_INPUT:
            return TextInputGenerator(rng)
        return MultipleChoiceGenerator(rng)
