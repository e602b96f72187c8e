"""
Pydantic models for book records and workflow values.
Field names are snake_case in Python and camelCase on the wire.
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class BookRecord(BaseModel):
    """
    Normalized book record shared by every catalog operation.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[int] = Field(None, description="Identifier assigned by the store")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")
    publisher: str = Field(..., description="Publishing house")
    publication_year: int = Field(..., description="Year of publication, 0 when unknown")
    isbn: str = Field(..., description="ISBN, empty when unknown")
    total_copies: int = Field(..., description="Copies owned by the library")
    available_copies: int = Field(..., description="Copies currently available for loan")
    acquisition_value: float = Field(..., description="Acquisition value")
    loan_status: str = Field(..., description="Loan status label")
    cover_image_filename: Optional[str] = Field(None, description="Stored cover image filename")

    def to_document(self) -> dict:
        """Fields as stored in the database, without the identifier."""
        return self.model_dump(exclude={"id", "cover_image_filename"})


class BookPayload(BaseModel):
    """
    External create/update input. Optional fields stay None until defaults are applied.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    author: str
    publisher: str
    total_copies: int = Field(..., ge=0)
    available_copies: int = Field(..., ge=0)
    publication_year: Optional[int] = None
    isbn: Optional[str] = None
    acquisition_value: Optional[float] = None
    loan_status: Optional[str] = None

    @field_validator("title", "author", "publisher")
    @classmethod
    def not_blank(cls, v):
        """Reject empty text; the raw value is kept as sent."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator(
        "total_copies", "available_copies", "publication_year", "acquisition_value",
        mode="before"
    )
    @classmethod
    def reject_booleans(cls, v):
        """Booleans are not numbers here, although numeric strings are."""
        if isinstance(v, bool):
            raise ValueError("must be a number, not a boolean")
        return v

    @field_validator(
        "publication_year", "isbn", "acquisition_value", "loan_status",
        mode="before"
    )
    @classmethod
    def blank_as_missing(cls, v):
        """Treat blank form values as absent."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class InsertResult(BaseModel):
    """Outcome of a store insert."""
    success: bool
    id: Optional[int] = None


class UploadedCover(BaseModel):
    """A cover upload staged on disk under a temporary name."""
    temp_path: Path
    original_filename: str
    destination: Path


class WorkflowResponse(BaseModel):
    """Status code and JSON content produced by a workflow operation."""
    status_code: int
    content: Any
