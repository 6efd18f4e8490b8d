from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from auditpdf.report.sanitize import sanitize_deep


ANSWER_TYPES = ('binary', 'score', 'text', 'photo', 'images')

_TRUE_TOKENS = {'true', 'yes', 'y', 'pass', 'passed', '1'}
_FALSE_TOKENS = {'false', 'no', 'n', 'fail', 'failed', '0'}


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
    return None


def _coerce_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _coerce_text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _coerce_str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item).strip() for item in value if isinstance(item, str) and item.strip()]


class AnswerFields(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    value_bool: bool | None = Field(default=None, validation_alias=AliasChoices('value_bool', 'valueBool'))
    value_num: float | None = Field(default=None, validation_alias=AliasChoices('value_num', 'valueNum'))
    value_text: str | None = Field(default=None, validation_alias=AliasChoices('value_text', 'valueText'))
    notes: str | None = None
    image_url: str | None = Field(default=None, validation_alias=AliasChoices('image_url', 'imageUrl'))
    photo_url: str | None = Field(default=None, validation_alias=AliasChoices('photo_url', 'photoUrl'))
    image_urls: list[str] = Field(default_factory=list, validation_alias=AliasChoices('image_urls', 'imageUrls'))
    photo_urls: list[str] = Field(default_factory=list, validation_alias=AliasChoices('photo_urls', 'photoUrls'))

    @field_validator('value_bool', mode='before')
    @classmethod
    def _lenient_bool(cls, value: Any) -> bool | None:
        return _coerce_bool(value)

    @field_validator('value_num', mode='before')
    @classmethod
    def _lenient_number(cls, value: Any) -> float | None:
        return _coerce_number(value)

    @field_validator('value_text', 'notes', 'image_url', 'photo_url', mode='before')
    @classmethod
    def _lenient_text(cls, value: Any) -> str | None:
        return _coerce_text(value)

    @field_validator('image_urls', 'photo_urls', mode='before')
    @classmethod
    def _lenient_list(cls, value: Any) -> list[str]:
        return _coerce_str_list(value)


class Question(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    code: str = ''
    prompt: str = ''
    answer_type: str = Field(default='', validation_alias=AliasChoices('answer_type', 'answerType'))
    answer: AnswerFields | None = None
    image_url: str | None = Field(default=None, validation_alias=AliasChoices('image_url', 'imageUrl'))
    photo_url: str | None = Field(default=None, validation_alias=AliasChoices('photo_url', 'photoUrl'))
    photos: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)

    @field_validator('code', 'prompt', 'answer_type', mode='before')
    @classmethod
    def _plain_text(cls, value: Any) -> str:
        return _coerce_text(value) or ''

    @field_validator('answer', mode='before')
    @classmethod
    def _answer_mapping(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator('image_url', 'photo_url', mode='before')
    @classmethod
    def _lenient_text(cls, value: Any) -> str | None:
        return _coerce_text(value)

    @field_validator('photos', 'images', mode='before')
    @classmethod
    def _lenient_list(cls, value: Any) -> list[str]:
        return _coerce_str_list(value)


class Section(BaseModel):
    model_config = ConfigDict(extra='ignore')

    title: str = ''
    questions: list[Question] = Field(default_factory=list)

    @field_validator('title', mode='before')
    @classmethod
    def _plain_text(cls, value: Any) -> str:
        return _coerce_text(value) or ''

    @field_validator('questions', mode='before')
    @classmethod
    def _questions_list(cls, value: Any) -> Any:
        return [] if value is None else value


class AuditPayload(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    id: str | None = None
    store: Any = None
    store_name: Any = Field(default=None, validation_alias=AliasChoices('store_name', 'storeName'))
    store_title: Any = Field(default=None, validation_alias=AliasChoices('store_title', 'storeTitle'))
    store_display_name: Any = Field(
        default=None,
        validation_alias=AliasChoices('store_display_name', 'storeDisplayName'),
    )
    template: Any = None
    template_name: Any = Field(default=None, validation_alias=AliasChoices('template_name', 'templateName'))
    started_at: str | None = Field(default=None, validation_alias=AliasChoices('started_at', 'startedAt'))
    submitted_at: str | None = Field(default=None, validation_alias=AliasChoices('submitted_at', 'submittedAt'))
    reported_by_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices('reportedByName', 'reported_by_name'),
    )
    reporter_name: str | None = Field(default=None, validation_alias=AliasChoices('reporterName', 'reporter_name'))
    submitted_by_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices('submittedByName', 'submitted_by_name'),
    )
    user: dict[str, Any] | None = None
    sections: list[Section] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    photo_urls: list[str] = Field(default_factory=list, validation_alias=AliasChoices('photo_urls', 'photoUrls'))
    image_urls: list[str] = Field(default_factory=list, validation_alias=AliasChoices('image_urls', 'imageUrls'))

    @field_validator(
        'id',
        'started_at',
        'submitted_at',
        'reported_by_name',
        'reporter_name',
        'submitted_by_name',
        mode='before',
    )
    @classmethod
    def _lenient_text(cls, value: Any) -> str | None:
        return _coerce_text(value)

    @field_validator('user', mode='before')
    @classmethod
    def _user_mapping(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator('sections', mode='before')
    @classmethod
    def _sections_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator('photos', 'images', 'photo_urls', 'image_urls', mode='before')
    @classmethod
    def _lenient_list(cls, value: Any) -> list[str]:
        return _coerce_str_list(value)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> AuditPayload:
        """Sanitize every string in the raw JSON document, then validate it."""
        return cls.model_validate(sanitize_deep(dict(raw)))


@dataclass(frozen=True)
class BinaryAnswer:
    value: bool | None


@dataclass(frozen=True)
class ScoreAnswer:
    passed: bool | None
    score: float | None


@dataclass(frozen=True)
class TextAnswer:
    kind: Literal['text', 'photo', 'images']
    text: str | None


@dataclass(frozen=True)
class UnsupportedAnswer:
    answer_type: str


Answer = Union[BinaryAnswer, ScoreAnswer, TextAnswer, UnsupportedAnswer]


def decode_answer(question: Question) -> Answer:
    kind = question.answer_type.strip().lower()
    fields = question.answer or AnswerFields()
    if kind == 'binary':
        return BinaryAnswer(value=fields.value_bool)
    if kind == 'score':
        return ScoreAnswer(passed=fields.value_bool, score=fields.value_num)
    if kind in {'text', 'photo', 'images'}:
        text = (fields.value_text or '').strip() or None
        return TextAnswer(kind=kind, text=text)
    return UnsupportedAnswer(answer_type=question.answer_type)


@dataclass(frozen=True)
class ImageEntry:
    format: Literal['jpeg', 'png']
    data: bytes
    source_url: str
    width: int
    height: int


@dataclass(frozen=True)
class PhotoSlot:
    source_url: str
    image: ImageEntry | None


@dataclass(frozen=True)
class GeneratedDocument:
    content: bytes
    file_name: str


class PersistedDocument(BaseModel):
    file_name: str
    url: str | None
    bucket: str
    path: str
