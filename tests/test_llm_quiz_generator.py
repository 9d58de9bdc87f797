import json
from types import SimpleNamespace

import pytest

import llm_quiz_generator
from llm_quiz_generator import QuizParseError, _pick_model, build_prompt, generate_quiz, get_model, parse_quiz
from models import MultipleChoiceQuestion, SingleChoiceQuestion


def _quiz_json(**overrides):
    data = {
        "title": "Quiz: Rivers",
        "questions": [
            {
                "question": "What shapes a river valley?",
                "options": ["Erosion", "Wind", "Ice", "Tides"],
                "correctAnswers": [0],
                "type": "single",
            },
            {
                "question": "Which are major rivers?",
                "options": ["Nile", "Sahara", "Amazon", "Alps"],
                "correctAnswers": [0, 2],
                "type": "multiple",
            },
        ],
    }
    data.update(overrides)
    return json.dumps(data)


def test_prompt_embeds_content_and_rules():
    prompt = build_prompt("Rivers flow downhill.")
    assert 'Content: "Rivers flow downhill."' in prompt
    assert "5 questions" in prompt
    assert "2-3 correct answers" in prompt
    assert '"correctAnswers": [0]' in prompt


def test_generate_quiz_decodes_tagged_questions(fake_model_factory):
    model = fake_model_factory(_quiz_json())
    quiz = generate_quiz("Rivers flow downhill.", model)

    assert quiz.title == "Quiz: Rivers"
    single, multiple = quiz.questions
    assert isinstance(single, SingleChoiceQuestion)
    assert isinstance(multiple, MultipleChoiceQuestion)
    assert multiple.correct_answers == [0, 2]
    assert len(model.prompts) == 1
    assert "Rivers flow downhill." in model.prompts[0]


def test_markdown_fences_are_tolerated():
    quiz = parse_quiz("```json\n" + _quiz_json() + "\n```")
    assert len(quiz.questions) == 2


def test_surrounding_prose_is_tolerated():
    quiz = parse_quiz("Here is your quiz:\n" + _quiz_json() + "\nEnjoy!")
    assert quiz.title == "Quiz: Rivers"


def test_question_type_is_case_insensitive():
    raw = _quiz_json()
    quiz = parse_quiz(raw.replace('"single"', '"Single"').replace('"multiple"', '"MULTIPLE"'))
    assert [q.type for q in quiz.questions] == ["single", "multiple"]


def test_stored_form_uses_camel_case_keys():
    quiz = parse_quiz(_quiz_json())
    dumped = quiz.questions[1].model_dump(by_alias=True)
    assert dumped == {
        "question": "Which are major rivers?",
        "options": ["Nile", "Sahara", "Amazon", "Alps"],
        "correctAnswers": [0, 2],
        "type": "multiple",
    }


@pytest.mark.parametrize("raw", ["", "not json at all", "{\"title\": \"x\", "])
def test_invalid_json_fails(raw):
    with pytest.raises(QuizParseError):
        parse_quiz(raw)


def _with_question(**fields):
    question = {
        "question": "Q?",
        "options": ["a", "b", "c"],
        "correctAnswers": [0],
        "type": "single",
    }
    question.update(fields)
    return json.dumps({"title": "T", "questions": [question]})


@pytest.mark.parametrize(
    "raw",
    [
        json.dumps({"questions": []}),
        json.dumps({"title": "T", "questions": []}),
        json.dumps(["not", "an", "object"]),
        _with_question(type="essay"),
        _with_question(type="single", correctAnswers=[0, 1]),
        _with_question(type="multiple", correctAnswers=[1]),
        _with_question(correctAnswers=[3]),
        _with_question(correctAnswers=[-1]),
        _with_question(type="multiple", correctAnswers=[1, 1]),
        _with_question(options=["only one"]),
        _with_question(correctAnswers=[]),
    ],
)
def test_shape_violations_fail_closed(raw):
    with pytest.raises(QuizParseError):
        parse_quiz(raw)


def test_model_errors_propagate():
    class BrokenModel:
        def generate_content(self, prompt):
            raise ConnectionError("model unavailable")

    with pytest.raises(ConnectionError):
        generate_quiz("text", BrokenModel())


def _listed(name, methods=("generateContent",)):
    return SimpleNamespace(name=f"models/{name}", supported_generation_methods=list(methods))


@pytest.fixture
def fresh_model_cache():
    get_model.cache_clear()
    yield
    get_model.cache_clear()


def test_pick_model_prefers_known_flash_models(monkeypatch):
    listed = [
        _listed("gemini-pro"),
        _listed("gemini-2.0-flash"),
        _listed("gemini-1.5-flash-8b"),
        _listed("gemini-1.5-flash", methods=("embedContent",)),
    ]
    monkeypatch.setattr(llm_quiz_generator.genai, "list_models", lambda: iter(listed))
    assert _pick_model() == "gemini-1.5-flash-8b"


def test_pick_model_falls_back_to_any_flash_then_first(monkeypatch):
    monkeypatch.setattr(
        llm_quiz_generator.genai, "list_models",
        lambda: iter([_listed("gemini-pro"), _listed("gemini-2.0-flash")]),
    )
    assert _pick_model() == "gemini-2.0-flash"
    monkeypatch.setattr(llm_quiz_generator.genai, "list_models", lambda: iter([_listed("gemini-pro")]))
    assert _pick_model() == "gemini-pro"


def test_pick_model_without_generate_content(monkeypatch):
    monkeypatch.setattr(
        llm_quiz_generator.genai, "list_models",
        lambda: iter([_listed("embedding-001", methods=("embedContent",))]),
    )
    with pytest.raises(RuntimeError):
        _pick_model()


def test_get_model_override_skips_listing(monkeypatch, fresh_model_cache):
    def no_listing():
        raise AssertionError("list_models should not be called")

    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.0-flash")
    monkeypatch.setattr(llm_quiz_generator.genai, "configure", lambda **kwargs: None)
    monkeypatch.setattr(llm_quiz_generator.genai, "list_models", no_listing)
    monkeypatch.setattr(
        llm_quiz_generator.genai, "GenerativeModel",
        lambda name, generation_config: SimpleNamespace(name=name, config=generation_config),
    )

    model = get_model()

    assert model.name == "gemini-2.0-flash"
    assert model.config["temperature"] == 0.7


def test_get_model_requires_api_key(monkeypatch, fresh_model_cache):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(RuntimeError, match="GEMINI_API_KEY"):
        get_model()
