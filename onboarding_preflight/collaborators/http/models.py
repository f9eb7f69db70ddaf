"""Pydantic models for onboarding test API responses."""

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ApiResponse(BaseModel):
    """Fields shared by every API response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str = ""
    details: str = ""


class DomainMetadata(BaseModel):
    """Metadata of the domain access check."""

    response_time: float | None = Field(default=None, alias="responseTime")
    status_code: int | None = Field(default=None, alias="statusCode")


class DomainResponse(ApiResponse):
    """Response from the domain access endpoint."""

    metadata: DomainMetadata = Field(default_factory=DomainMetadata)


class SendEmailMetadata(BaseModel):
    """Metadata of a sent verification email."""

    message_id: str | None = Field(default=None, alias="messageId")


class SendEmailResponse(ApiResponse):
    """Response from the send-email endpoint."""

    metadata: SendEmailMetadata = Field(default_factory=SendEmailMetadata)


class VerifyEmailResponse(ApiResponse):
    """Response from the verify-email endpoint."""

    status: Literal["PASS", "WARNING", "FAIL"] | None = None
    delivery_time: float | None = Field(default=None, alias="deliveryTime")


class DownloadFile(BaseModel):
    """A file embedded in the download response."""

    name: str
    content: str
    type: str = "application/octet-stream"
    encoding: Literal["base64", "utf-8", "utf8", "text"] | None = None


class DownloadMetadata(BaseModel):
    """Metadata of the download response."""

    files_count: int | None = Field(default=None, alias="filesCount")
    files: Sequence[DownloadFile] = Field(default_factory=list)


class DownloadResponse(ApiResponse):
    """Response from the file-download endpoint."""

    metadata: DownloadMetadata = Field(default_factory=DownloadMetadata)


class UploadedFile(BaseModel):
    """A file accepted by the upload endpoint."""

    filename: str
    size: int


class UploadResponse(ApiResponse):
    """Response from the file-upload endpoint."""

    warnings: Sequence[str] = Field(default_factory=list)
    uploaded_files: Sequence[UploadedFile] = Field(
        default_factory=list, alias="uploadedFiles"
    )
