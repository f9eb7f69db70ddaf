"""Configuration for the HTTP collaborator backend."""

from pathlib import Path

from pydantic import BaseModel, Field, SecretStr


class HttpCollaboratorsConfig(BaseModel):
    """Configuration for the HTTP collaborator backend."""

    api_base_url: str = "http://localhost:3005/api"
    token: SecretStr | None = None
    request_timeout: float = Field(default=120.0, gt=0)
    widget_url: str = "https://widget.intercom.io/widget/app"
    download_dir: Path = Path("preflight-downloads")
    screen_width: int = Field(default=1920, gt=0)
    screen_height: int = Field(default=1080, gt=0)
    pixel_ratio: float = Field(default=1.0, gt=0)
    speed_upload_bytes: int = Field(default=500 * 1024, gt=0)
