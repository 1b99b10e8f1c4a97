"""
Drives one resumable quiz over a set.

    LOADING -> ACTIVE <-> FEEDBACK -> FINISHED
                                        |
    LOADING <------- restart() ---------+

The controller owns no persistent state of its own: the session and the
question order live in the stores, questions are rebuilt on every setup.
"""

import logging
import random
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel

from .errors import InvalidTransition
from .generator import QuizFactory, answers_match
from .models import (
    Item,
    ItemSet,
    MultipleChoiceQuestion,
    Question,
    QuizMode,
    Session,
    TextInputQuestion,
)
from .order_store import OrderStore
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class QuizState(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    FEEDBACK = "feedback"
    FINISHED = "finished"


class SetupResult(BaseModel):
    session: Session
    current_question: Optional[Question] = None
    is_finished: bool
    no_answerable_content: bool = False


class AnswerResult(BaseModel):
    is_correct: Optional[bool]
    correct_answer_text: str
    user_answer: Optional[str] = None


class ProgressResult(BaseModel):
    current_question: Optional[Question] = None
    is_finished: bool


class SessionSnapshot(BaseModel):
    current_index: int
    total_questions: int
    score: int
    correct_count: int
    incorrect_count: int


def _has_progress(session: Session) -> bool:
    return bool(
        session.current_index
        or session.score
        or session.correct_count
        or session.incorrect_count
        or session.answered_item_ids
    )


class SessionController:
    def __init__(
        self,
        sessions: SessionStore,
        orders: Optional[OrderStore] = None,
        rng: Optional[random.Random] = None,
    ):
        self.sessions = sessions
        self.orders = orders or sessions.orders
        self.rng = rng or random.Random()

        self.state = QuizState.LOADING
        self.item_set: Optional[ItemSet] = None
        self.mode: Optional[QuizMode] = None
        self.session: Optional[Session] = None
        self.questions: List[Question] = []
        self.no_answerable_content = False
        self.last_answer: Optional[AnswerResult] = None

    # --- Queries ---
    @property
    def question_count(self) -> int:
        """Questions reachable in this run; items that could not be asked are not counted."""
        if self.session is None:
            return 0
        return min(self.session.total_questions, len(self.questions))

    @property
    def current_question(self) -> Optional[Question]:
        if self.state not in (QuizState.ACTIVE, QuizState.FEEDBACK):
            return None
        return self.questions[self.session.current_index]

    @property
    def is_finished(self) -> bool:
        return self.state is QuizState.FINISHED

    def snapshot(self) -> SessionSnapshot:
        if self.session is None:
            raise InvalidTransition("No quiz has been set up")
        return SessionSnapshot(
            current_index=self.session.current_index,
            total_questions=self.session.total_questions,
            score=self.session.score,
            correct_count=self.session.correct_count,
            incorrect_count=self.session.incorrect_count,
        )

    # --- Transitions ---
    def setup_session(self, item_set: ItemSet, mode: QuizMode) -> SetupResult:
        items = item_set.items
        session = self.sessions.get_or_create(item_set.identity, mode, len(items))

        ordered: Optional[List[Item]] = None
        if session.has_order_saved:
            ordered = self.orders.load(session.session_id, items)
        if ordered is None:
            ordered = list(items)
            self.rng.shuffle(ordered)
            if _has_progress(session):
                # Progress indexes into the previous order and cannot carry over.
                session = self.sessions.reset_progress(session)
            self.orders.save(session.session_id, [item.id for item in ordered])
            session = self.sessions.get_by_id(session.session_id) or session

        questions = QuizFactory.create(mode, self.rng).generate_all(ordered, items)

        self.item_set = item_set
        self.mode = mode
        self.session = session
        self.questions = questions
        self.last_answer = None
        self.no_answerable_content = bool(ordered) and not questions

        if self.no_answerable_content:
            logger.warning(
                f"No answerable questions in {item_set.identity} for mode {mode.slug}"
            )
            self.state = QuizState.FINISHED
        elif session.current_index >= session.total_questions > 0:
            self.state = QuizState.FINISHED
        elif session.current_index >= self.question_count:
            self.state = QuizState.FINISHED
        else:
            self.state = QuizState.ACTIVE

        return SetupResult(
            session=session,
            current_question=self.current_question,
            is_finished=self.is_finished,
            no_answerable_content=self.no_answerable_content,
        )

    def submit_answer(self, selection: Union[int, str, None]) -> AnswerResult:
        """Grades the current question.

        ``selection`` is an option index for multiple choice, typed text for
        text input, or None to skip without grading. The item is marked
        answered either way.
        """
        if self.state is not QuizState.ACTIVE:
            raise InvalidTransition(f"Cannot answer while {self.state.value}")
        question = self.current_question

        if isinstance(question, MultipleChoiceQuestion):
            is_correct, user_answer = self._grade_choice(question, selection)
        else:
            is_correct, user_answer = self._grade_text(question, selection)

        self.session = self.sessions.record_answer(
            self.session, is_correct, item_id=question.source_item_id
        )

        self.last_answer = AnswerResult(
            is_correct=is_correct,
            correct_answer_text=question.correct_answer_text,
            user_answer=user_answer,
        )
        self.state = QuizState.FEEDBACK
        return self.last_answer

    @staticmethod
    def _grade_choice(question: MultipleChoiceQuestion, selection):
        if selection is None:
            return None, None
        if isinstance(selection, bool) or not isinstance(selection, int):
            raise ValueError("Multiple choice answers are option indexes")
        if not (0 <= selection < len(question.options)):
            raise ValueError(f"Invalid option {selection}")
        return selection == question.correct_option_index, question.options[selection]

    @staticmethod
    def _grade_text(question: TextInputQuestion, selection):
        if selection is None:
            return None, None
        if not isinstance(selection, str):
            raise ValueError("Text input answers must be strings")
        return answers_match(selection, question.correct_answer_text), selection

    def proceed(self) -> ProgressResult:
        if self.state is not QuizState.FEEDBACK:
            raise InvalidTransition(f"Cannot proceed while {self.state.value}")

        # The index also moves past the last question so a finished quiz
        # resumes as finished.
        self.session = self.sessions.advance(self.session)
        if self.session.current_index >= self.question_count:
            self.state = QuizState.FINISHED
        else:
            self.state = QuizState.ACTIVE
        self.last_answer = None
        return ProgressResult(current_question=self.current_question, is_finished=self.is_finished)

    def restart(self) -> SetupResult:
        if self.session is None:
            raise InvalidTransition("No quiz has been set up")
        self.session = self.sessions.reset_progress(self.session)
        logger.info(f"Restarting {self.session.session_id}")
        return self.setup_session(self.item_set, self.mode)
