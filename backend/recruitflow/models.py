from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from typing import Optional, Any, Dict, Literal, Tuple
from datetime import datetime, timezone

# Placeholders shown to recruiters when a field could not be found.
UNKNOWN_FIRST_NAME = "Unknown"
UNKNOWN_LAST_NAME = "Person"
NO_EMAIL = "No email detected in resume"
NO_PHONE = "No phone detected in resume"
NO_LOCATION = "No location detected in resume"
NO_SUMMARY = "No summary detected in resume"
NO_EXPERIENCE = "No experience details detected in resume"
NO_EDUCATION = "No education details detected in resume"


class ParsedResumeData(BaseModel):
    """Fields pulled out of a resume, either by the AI service or locally.

    Every field is always populated; anything missing, null or blank is
    replaced by its placeholder so the candidate form can be filled as-is.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    first_name: str = Field(UNKNOWN_FIRST_NAME, alias="firstName")
    last_name: str = Field(UNKNOWN_LAST_NAME, alias="lastName")
    email: str = NO_EMAIL
    phone: str = NO_PHONE
    location: str = NO_LOCATION
    summary: str = NO_SUMMARY
    skills: Tuple[str, ...] = ()
    experience: str = NO_EXPERIENCE
    education: str = NO_EDUCATION
    # services that don't report a confidence get a neutral score
    confidence: float = 0.5

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_fields(cls, values: Any) -> Any:
        if isinstance(values, dict):
            return {
                key: value for key, value in values.items()
                if value is not None and not (isinstance(value, str) and not value.strip())
            }
        return values

    @field_validator("skills", mode="before")
    @classmethod
    def _coerce_skills(cls, value: Any) -> Tuple[str, ...]:
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple)):
            raise ValueError("skills must be a list of strings")
        skills = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("name", "")
            item = str(item).strip()
            if item:
                skills.append(item)
        return tuple(skills)

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return max(0.0, min(1.0, value))


class ParseOutcome(BaseModel):
    """Result of the AI-then-fallback pipeline, including which stage answered."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    data: ParsedResumeData
    source: Literal["ai", "fallback"]
    ai_error: Optional[str] = Field(None, alias="aiError")
    ai_model: Optional[str] = Field(None, alias="model")
    processing_time_ms: float = Field(0.0, alias="processingTimeMs")

    @computed_field(alias="usedFallback")
    @property
    def used_fallback(self) -> bool:
        return self.source == "fallback"


class ParseTextRequest(BaseModel):
    text: str = ""
    model: Optional[str] = None


class ExtractRequest(BaseModel):
    text: str = ""


class ParseResponse(BaseModel):
    id: Optional[str] = None
    outcome: ParseOutcome


class ParseLog(BaseModel):
    filename: Optional[str] = None
    text_chars: int
    source: str
    model: Optional[str] = None
    ai_error: Optional[str] = None
    confidence: float
    processing_time_ms: float
    parsed: Dict[str, Any]
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
