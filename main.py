import logging
from typing import Callable, List
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from database import SessionLocal, init_db
from scraper import FetchError, fetch_page, page_title, scrape_page
from llm_quiz_generator import QuizParseError, TextModel, generate_quiz, get_model
from quiz_store import (
    AttemptNotFound,
    QuizNotFound,
    create_quiz,
    get_attempt,
    get_quiz,
    list_quizzes,
    submit_attempt,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="AI Webpage Quiz Generator API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class GenerateBody(BaseModel):
    url: str


class AttemptBody(BaseModel):
    answers: List[List[int]]


def get_quiz_model() -> Callable[[], TextModel]:
    """Model factory; the client is only built once a request gets as far as prompting."""
    return get_model


def _checked_url(raw: str) -> str:
    url = raw.strip()
    if not (url.startswith("http://") or url.startswith("https://")):
        raise HTTPException(status_code=400, detail="Invalid URL")
    return url


@app.on_event("startup")
def on_startup():
    init_db()


@app.get("/")
def root():
    """API root endpoint with basic information."""
    return {
        "name": "AI Webpage Quiz Generator API",
        "version": "1.0.0",
        "endpoints": [
            "/generate_quiz",
            "/quizzes",
            "/quiz/{id}",
            "/quiz/{id}/attempts",
            "/attempts/{id}",
            "/preview",
        ],
    }


@app.post("/preview")
def preview_url(body: GenerateBody):
    """
    Preview a URL by fetching just the page title.
    Useful for URL validation before generating a quiz.
    """
    url = _checked_url(body.url)
    try:
        html = fetch_page(url)
    except FetchError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"url": url, "title": page_title(html), "valid": True}


@app.post("/generate_quiz")
def generate_quiz_endpoint(
    body: GenerateBody, model_factory: Callable[[], TextModel] = Depends(get_quiz_model)
):
    """
    Generate a quiz from a webpage URL and store it.
    Nothing is stored when fetching or quiz generation fails.
    """
    url = _checked_url(body.url)

    try:
        text, _ = scrape_page(url)
    except FetchError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        quiz = generate_quiz(text, model_factory())
    except QuizParseError as e:
        logger.warning("Unusable model response for %s: %s", url, e)
        raise HTTPException(status_code=500, detail=f"LLM generation failed: {e}")
    except Exception as e:
        logger.exception("Model call failed for %s", url)
        raise HTTPException(status_code=500, detail=f"LLM generation failed: {e}")

    questions = [q.model_dump(by_alias=True) for q in quiz.questions]
    db = SessionLocal()
    try:
        quiz_id = create_quiz(db, quiz.title, url, questions, scraped_content=text)
        return get_quiz(db, quiz_id)
    finally:
        db.close()


@app.get("/quizzes")
def quizzes():
    """Get all generated quizzes, newest first."""
    db = SessionLocal()
    try:
        return list_quizzes(db)
    finally:
        db.close()


@app.get("/quiz/{quiz_id}")
def quiz_detail(quiz_id: int):
    """Get full quiz details by ID."""
    db = SessionLocal()
    try:
        return get_quiz(db, quiz_id)
    except QuizNotFound:
        raise HTTPException(status_code=404, detail="Quiz not found")
    finally:
        db.close()


@app.post("/quiz/{quiz_id}/attempts")
def submit_attempt_endpoint(quiz_id: int, body: AttemptBody):
    """Score a completed attempt and store it."""
    db = SessionLocal()
    try:
        attempt_id = submit_attempt(db, quiz_id, body.answers)
        return get_attempt(db, attempt_id)
    except QuizNotFound:
        raise HTTPException(status_code=404, detail="Quiz not found")
    finally:
        db.close()


@app.get("/attempts/{attempt_id}")
def attempt_detail(attempt_id: int):
    """Get a stored attempt and its score."""
    db = SessionLocal()
    try:
        return get_attempt(db, attempt_id)
    except AttemptNotFound:
        raise HTTPException(status_code=404, detail="Attempt not found")
    finally:
        db.close()
