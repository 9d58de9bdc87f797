"""
Persistence operations for quizzes and attempts.
Quizzes and attempts are inserted once and never updated or deleted.
"""
import json
import logging
from typing import List, Optional, Sequence
from sqlalchemy.orm import Session
from database import Attempt, Quiz
from scorer import score_answers

logger = logging.getLogger(__name__)


class QuizNotFound(LookupError):
    pass


class AttemptNotFound(LookupError):
    pass


def quiz_to_dict(quiz: Quiz) -> dict:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "url": quiz.url,
        "questions": json.loads(quiz.questions_data),
        "date_generated": quiz.date_generated.isoformat(),
    }


def attempt_to_dict(attempt: Attempt, total: Optional[int] = None) -> dict:
    data = {
        "id": attempt.id,
        "quiz_id": attempt.quiz_id,
        "score": attempt.score,
        "answers": json.loads(attempt.answers_data),
        "completed": attempt.completed,
        "date_submitted": attempt.date_submitted.isoformat(),
    }
    if total is not None:
        data["total"] = total
    return data


def create_quiz(
    db: Session,
    title: str,
    url: str,
    questions: List[dict],
    scraped_content: Optional[str] = None,
) -> int:
    """
    Insert a new quiz.

    Args:
        db: Database session
        title: Quiz title
        url: Source page URL
        questions: Question dicts in stored form (question, options, correctAnswers, type)
        scraped_content: Text the quiz was generated from

    Returns:
        Id of the new quiz
    """
    record = Quiz(
        url=url,
        title=title,
        scraped_content=scraped_content,
        questions_data=json.dumps(questions, ensure_ascii=False),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Stored quiz %d (%s) for %s", record.id, title, url)
    return record.id


def list_quizzes(db: Session) -> List[dict]:
    """All quizzes, newest first."""
    rows = db.query(Quiz).order_by(Quiz.id.desc()).all()
    return [quiz_to_dict(r) for r in rows]


def get_quiz(db: Session, quiz_id: int) -> dict:
    quiz = db.get(Quiz, quiz_id)
    if not quiz:
        raise QuizNotFound(f"Quiz {quiz_id} not found")
    return quiz_to_dict(quiz)


def submit_attempt(db: Session, quiz_id: int, answers: Sequence[Sequence[int]]) -> int:
    """
    Score a completed attempt and store it.

    Answer sets are matched to questions by position. A length mismatch is
    not rejected: unanswered trailing questions score nothing and surplus
    answer sets are ignored.

    Raises:
        QuizNotFound: no quiz with this id; nothing is written
    """
    quiz = db.get(Quiz, quiz_id)
    if not quiz:
        raise QuizNotFound(f"Quiz {quiz_id} not found")

    questions = json.loads(quiz.questions_data)
    answers = [list(a) for a in answers]
    score = score_answers((q["correctAnswers"] for q in questions), answers)

    record = Attempt(
        quiz_id=quiz.id,
        score=score,
        answers_data=json.dumps(answers),
        completed=True,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Attempt %d on quiz %d scored %d/%d", record.id, quiz.id, score, len(questions))
    return record.id


def get_attempt(db: Session, attempt_id: int) -> dict:
    attempt = db.get(Attempt, attempt_id)
    if not attempt:
        raise AttemptNotFound(f"Attempt {attempt_id} not found")
    quiz = db.get(Quiz, attempt.quiz_id)
    total = len(json.loads(quiz.questions_data)) if quiz else None
    return attempt_to_dict(attempt, total)
