"""
File analysis models.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from parley.models.enums import ExtractionMethod


class FileMetadata(BaseModel):
    """Descriptive metadata about an uploaded file."""

    filename: str
    size: int = Field(..., ge=0, description="Size in bytes")
    size_formatted: str = Field(..., alias="sizeFormatted")
    type: str = Field(..., description="Declared MIME type")
    uploaded_at: datetime = Field(..., alias="uploadedAt")

    model_config = {"populate_by_name": True}


class AnalyzedFileMetadata(FileMetadata):
    """Metadata returned together with an analysis."""

    content_length: int = Field(..., alias="contentLength")


class FileAnalysisResponse(BaseModel):
    """Response model for file analysis."""

    success: bool = True
    analysis: str
    metadata: AnalyzedFileMetadata
    extraction_method: ExtractionMethod = Field(..., alias="extractionMethod")
    content_preview: str = Field(..., alias="contentPreview")

    model_config = {"populate_by_name": True}


class FileInfoResponse(BaseModel):
    """Response model for file info lookups."""

    success: bool = True
    metadata: FileMetadata
    supported: bool
