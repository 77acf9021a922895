"""Pydantic schemas for form definitions, submissions and read views.

Input schemas describe what callers hand to the services. View schemas are
frozen snapshots of stored entities; changing a view never touches the
store. Content is matched by shape only: metadata, type tags, options and
answer text are stored exactly as given.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from survey_forms.models.form import Form
from survey_forms.models.question import Question
from survey_forms.models.respondent import RespondentMapping


class QuestionCreate(BaseModel):
    """Definition of a question to be created.

    Attributes:
        key: Caller-supplied identifier (e.g. "Q1")
        type: Free-form answer shape tag (e.g. "single-choice", "text")
        prompt: Display text
        options: Ordered choices for choice-type questions
    """
    key: str = Field(..., description="Question identifier")
    type: str = Field(..., description="Answer shape tag")
    prompt: str = Field(..., description="Display text")
    options: Optional[list[str]] = Field(None, description="Ordered choices")


class FormCreate(BaseModel):
    """Definition of a form to be published.

    Attributes:
        audience: Who the form is aimed at
        data_type: What kind of data the form collects
        purpose: Why the data is collected
        demographic: Demographic the form targets
        questions: Initial questions, in order
    """
    audience: str = ""
    data_type: str = ""
    purpose: str = ""
    demographic: str = ""
    questions: list[QuestionCreate] = Field(default_factory=list)


class AnswerSubmission(BaseModel):
    """One respondent's answers, positionally matched to a form's questions."""
    answers: list[str] = Field(..., description="Answer i belongs to question i")


class QuestionView(BaseModel):
    """Read-only snapshot of a question.

    Attributes:
        key: Question identifier
        type: Answer shape tag
        prompt: Display text
        options: Ordered choices, or None
        answers: Respondent identity -> answer text
        answer_count: Number of answers recorded
    """
    model_config = ConfigDict(frozen=True)

    key: str
    type: str
    prompt: str
    options: Optional[tuple[str, ...]] = None
    answers: dict[str, str] = Field(default_factory=dict)
    answer_count: int = 0

    @classmethod
    def from_question(cls, question: Question) -> "QuestionView":
        """Build a snapshot of a stored question."""
        return cls(
            key=question.key,
            type=question.type,
            prompt=question.prompt,
            options=tuple(question.options) if question.options is not None else None,
            answers=question.answer_map,
            answer_count=question.answer_count,
        )


class FormView(BaseModel):
    """Read-only snapshot of a form and its questions."""
    model_config = ConfigDict(frozen=True)

    id: int
    owner: str
    audience: str
    data_type: str
    purpose: str
    demographic: str
    questions: tuple[QuestionView, ...] = ()

    @classmethod
    def from_form(cls, form: Form) -> "FormView":
        """Build a snapshot of a stored form."""
        return cls(
            id=form.id,
            owner=form.owner,
            audience=form.audience,
            data_type=form.data_type,
            purpose=form.purpose,
            demographic=form.demographic,
            questions=tuple(QuestionView.from_question(q) for q in form.questions),
        )


class RespondentMappingView(BaseModel):
    """Read-only snapshot of a respondent mapping."""
    model_config = ConfigDict(frozen=True)

    id: int
    form_id: int
    respondents: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, mapping: RespondentMapping) -> "RespondentMappingView":
        """Build a snapshot of a stored mapping."""
        return cls(
            id=mapping.id,
            form_id=mapping.form_id,
            respondents=tuple(mapping.respondents),
        )
