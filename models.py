from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Annotated, List, Literal, Union


class _QuestionBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    options: List[str] = Field(min_length=2)
    correct_answers: List[int] = Field(alias="correctAnswers", min_length=1)

    @model_validator(mode="after")
    def check_indices(self):
        if len(set(self.correct_answers)) != len(self.correct_answers):
            raise ValueError("correctAnswers contains duplicate indices")
        for idx in self.correct_answers:
            if not 0 <= idx < len(self.options):
                raise ValueError(f"correct answer index {idx} is out of range")
        return self


class SingleChoiceQuestion(_QuestionBase):
    type: Literal["single"] = "single"

    @model_validator(mode="after")
    def check_one_answer(self):
        if len(self.correct_answers) != 1:
            raise ValueError("single-choice questions need exactly one correct answer")
        return self


class MultipleChoiceQuestion(_QuestionBase):
    type: Literal["multiple"] = "multiple"

    @model_validator(mode="after")
    def check_several_answers(self):
        if len(self.correct_answers) < 2:
            raise ValueError("multi-select questions need at least two correct answers")
        return self


Question = Annotated[
    Union[SingleChoiceQuestion, MultipleChoiceQuestion],
    Field(discriminator="type"),
]


class QuizOutput(BaseModel):
    title: str
    questions: List[Question] = Field(min_length=1)
