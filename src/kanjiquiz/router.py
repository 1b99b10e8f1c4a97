import logging
from typing import Union

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .controller import SessionSnapshot
from .errors import NotFound
from .globals import get_controllers, get_vocab_manager
from .models import QuizMode, make_session_id
from .registry import ControllerRegistry
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class AnswerRequest(BaseModel):
    selection: Union[int, str, None] = None


def get_mode(mode: str) -> QuizMode:
    try:
        return QuizMode.from_slug(mode)
    except ValueError as e:
        raise NotFound(str(e)) from e


@router.get("/sets")
def list_sets(vocab: VocabularyManager = Depends(get_vocab_manager)):
    return vocab.get_sets()


@router.get("/modes")
def list_modes():
    return [
        {"id": mode.slug, "name": mode.value, "description": mode.description}
        for mode in QuizMode
    ]


@router.post("/quiz/{set_id}/{mode}/start")
def start_quiz(
    set_id: str,
    quiz_mode: QuizMode = Depends(get_mode),
    vocab: VocabularyManager = Depends(get_vocab_manager),
    registry: ControllerRegistry = Depends(get_controllers),
):
    item_set = vocab.get_set(set_id)
    controller, lock = registry.acquire(set_id, quiz_mode)
    with lock:
        result = controller.setup_session(item_set, quiz_mode)
    logger.info(f"Quiz started: {result.session.session_id} (finished={result.is_finished})")
    return result


@router.post("/quiz/{set_id}/{mode}/answer")
def submit_answer(
    set_id: str,
    answer: AnswerRequest,
    quiz_mode: QuizMode = Depends(get_mode),
    vocab: VocabularyManager = Depends(get_vocab_manager),
    registry: ControllerRegistry = Depends(get_controllers),
):
    vocab.get_set(set_id)
    controller, lock = registry.find(set_id, quiz_mode)
    with lock:
        try:
            return controller.submit_answer(answer.selection)
        except ValueError as e:
            return JSONResponse({"error": str(e)}, status_code=400)


@router.post("/quiz/{set_id}/{mode}/proceed")
def proceed(
    set_id: str,
    quiz_mode: QuizMode = Depends(get_mode),
    vocab: VocabularyManager = Depends(get_vocab_manager),
    registry: ControllerRegistry = Depends(get_controllers),
):
    vocab.get_set(set_id)
    controller, lock = registry.find(set_id, quiz_mode)
    with lock:
        return controller.proceed()


@router.post("/quiz/{set_id}/{mode}/restart")
def restart(
    set_id: str,
    quiz_mode: QuizMode = Depends(get_mode),
    vocab: VocabularyManager = Depends(get_vocab_manager),
    registry: ControllerRegistry = Depends(get_controllers),
):
    vocab.get_set(set_id)
    controller, lock = registry.find(set_id, quiz_mode)
    with lock:
        return controller.restart()


@router.get("/quiz/{set_id}/{mode}/progress", response_model=SessionSnapshot)
def progress(
    set_id: str,
    quiz_mode: QuizMode = Depends(get_mode),
    vocab: VocabularyManager = Depends(get_vocab_manager),
    registry: ControllerRegistry = Depends(get_controllers),
):
    vocab.get_set(set_id)
    if make_session_id(set_id, quiz_mode) in registry:
        controller, lock = registry.find(set_id, quiz_mode)
        with lock:
            if controller.session is not None:
                return controller.snapshot()
    session = registry.sessions.get(set_id, quiz_mode)
    if session is None:
        raise NotFound(f"No quiz session for {set_id} ({quiz_mode.slug})")
    return SessionSnapshot(
        current_index=session.current_index,
        total_questions=session.total_questions,
        score=session.score,
        correct_count=session.correct_count,
        incorrect_count=session.incorrect_count,
    )


@router.delete("/quiz/{set_id}/{mode}")
def clear_quiz(
    set_id: str,
    quiz_mode: QuizMode = Depends(get_mode),
    registry: ControllerRegistry = Depends(get_controllers),
):
    registry.sessions.clear(set_id, quiz_mode)
    registry.discard(set_id, quiz_mode)
    return {"status": "success"}
