from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator

from app.models.user import UserPreferences


class AnalyzePayload(BaseModel):
    """Payload for the analyze endpoint: a label image or already-extracted text."""

    model_config = ConfigDict(populate_by_name=True)

    image_data: str | None = Field(
        None,
        alias="imageData",
        title="Image Data",
        description="Base64 encoded label image, optionally as a data: URI",
    )
    text: str | None = Field(
        None, title="Label Text", description="Ingredient text extracted by the client"
    )

    @field_validator("image_data", "text", mode="before")  # type: ignore[misc]
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def require_image_or_text(self) -> "AnalyzePayload":
        if self.image_data is None and self.text is None:
            raise ValueError("Either 'imageData' or 'text' is required")
        return self


class FeedbackPayload(BaseModel):
    helpful: bool = Field(..., description="Whether the analysis was helpful")
    rating: int | None = Field(None, ge=1, le=5, description="Optional 1-5 star rating")
    comments: str | None = Field(None, max_length=2000)


class StartConversationPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    analysis_id: str = Field(..., alias="analysisId", min_length=1)


class MessagePayload(BaseModel):
    message: str = Field(..., title="Message", description="The user's follow-up question")

    @field_validator("message")  # type: ignore[misc]
    @classmethod
    def validate_message(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Message cannot be empty")
        return v.strip()


class PreferencesPayload(UserPreferences):
    """Replacement set of dietary preferences for the current user."""
