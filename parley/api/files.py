"""
File analysis API endpoints.
"""

from fastapi import APIRouter, File, UploadFile

from parley.api.deps import FileAnalyzer
from parley.core.exceptions import PayloadTooLargeError
from parley.models.file_analysis import FileAnalysisResponse, FileInfoResponse

router = APIRouter()


async def _read_limited(upload: UploadFile, max_bytes: int) -> bytes:
    """Read the upload, failing fast once it grows past the limit."""
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise PayloadTooLargeError(f"File too large. Maximum size is {max_bytes} bytes")
    return data


@router.post("/analyze", response_model=FileAnalysisResponse)
async def analyze_file(service: FileAnalyzer, file: UploadFile = File(...)):
    """Extract the text of an uploaded file and analyze it."""
    # Unsupported types are rejected before the body is read
    service.require_extractor(file.content_type)
    data = await _read_limited(file, service.max_bytes)
    return await service.analyze(file.filename or "upload", file.content_type, data)


@router.post("/info", response_model=FileInfoResponse)
async def file_info(service: FileAnalyzer, file: UploadFile = File(...)):
    """Return metadata about an upload without analyzing it."""
    size = file.size
    if size is None:
        size = len(await _read_limited(file, service.max_bytes))
    return service.describe(file.filename or "upload", file.content_type, size)
