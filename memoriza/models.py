from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ContentType(str, Enum):
    TEXT = "text"
    PDF = "pdf"
    IMAGE = "image"


class GenerateFlashcardsRequest(BaseModel):
    topic: str
    difficulty: Difficulty = Difficulty.INTERMEDIATE

    @field_validator("topic")
    @classmethod
    def _topic_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Topic is required")
        return value


class GenerateFromSummaryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    content_type: ContentType = Field(alias="contentType")
    difficulty: Difficulty = Difficulty.INTERMEDIATE
    file_name: Optional[str] = Field(default=None, alias="fileName")

    @field_validator("content")
    @classmethod
    def _content_long_enough(cls, value: str) -> str:
        if len(value) < 10:
            raise ValueError("Content must be at least 10 characters")
        return value


class UpstreamGenerateRequest(BaseModel):
    prompt: str
    level: Optional[str] = None


class UpstreamSummaryRequest(BaseModel):
    content: str
    content_type: ContentType
    level: Optional[str] = None
    file_name: Optional[str] = None


class UpstreamFlashcard(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    flashcard_set_id: str
    card_order: int = 0
    question_text: str
    answer_text: str
    created_at: str = ""
    updated_at: str = ""


class GenerateFlashcardsResponse(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    flashcard_set_id: str
    flashcards: list[UpstreamFlashcard] = Field(default_factory=list)


class Flashcard(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    topic: str = ""
    question: str
    answer: str
    card_order: int = 0


class FlashcardSet(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    user_id: str
    topic: str
    created_at: str = ""
    updated_at: str = ""
    flashcard_count: int = 0
    flashcards: list[Flashcard] = Field(default_factory=list)

    @field_validator("flashcards", mode="before")
    @classmethod
    def _adapt_upstream_cards(cls, value, info: ValidationInfo):
        if not value:
            return []
        topic = info.data.get("topic", "")
        return [
            flashcard_from_upstream(UpstreamFlashcard.model_validate(card), topic)
            if isinstance(card, dict) and "question_text" in card
            else card
            for card in value
        ]

    @model_validator(mode="after")
    def _count_matches_cards(self):
        if self.flashcards:
            self.flashcard_count = len(self.flashcards)
        return self


class GenerateResult(BaseModel):
    flashcard_set_id: str
    topic: str
    difficulty: Difficulty
    flashcards: list[Flashcard]


class DashboardSummary(BaseModel):
    total_sets: int
    total_flashcards: int
    last_studied: Optional[str] = None
    sets: list[FlashcardSet] = Field(default_factory=list)


def to_upstream_request(request: GenerateFlashcardsRequest) -> UpstreamGenerateRequest:
    """Rename front-end fields to the upstream generate shape."""
    return UpstreamGenerateRequest(
        prompt=request.topic,
        level=request.difficulty.value,
    )


def to_upstream_summary_request(
    request: GenerateFromSummaryRequest,
) -> UpstreamSummaryRequest:
    return UpstreamSummaryRequest(
        content=request.content,
        content_type=request.content_type,
        level=request.difficulty.value,
        file_name=request.file_name,
    )


def flashcard_from_upstream(card: UpstreamFlashcard, topic: str = "") -> Flashcard:
    return Flashcard(
        id=card.id,
        topic=topic,
        question=card.question_text,
        answer=card.answer_text,
        card_order=card.card_order,
    )


def to_flashcards(response: GenerateFlashcardsResponse, topic: str = "") -> list[Flashcard]:
    """Map every upstream card to the front-end shape, keeping response order."""
    return [flashcard_from_upstream(card, topic) for card in response.flashcards]
