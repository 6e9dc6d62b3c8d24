"""
File parameters sent as multipart entries instead of form fields.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UploadableParameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_path: Optional[str] = None
    content: Optional[bytes] = None
    content_type: str = DEFAULT_CONTENT_TYPE
    filename: Optional[str] = None

    @model_validator(mode="after")
    def _one_source(self) -> "UploadableParameter":
        if (self.source_path is None) == (self.content is None):
            raise ValueError("exactly one of source_path or content is required")
        return self

    @classmethod
    def from_path(cls, path: str, content_type: str = DEFAULT_CONTENT_TYPE) -> "UploadableParameter":
        return cls(source_path=path, content_type=content_type)

    def resolved_filename(self) -> str:
        if self.filename:
            return self.filename
        if self.source_path:
            return Path(self.source_path).name
        return "upload"

    def to_upload(self) -> tuple[str, bytes, str]:
        """Return the httpx ``files=`` entry: (filename, data, content type)."""
        data = self.content if self.content is not None else Path(self.source_path).read_bytes()  # type: ignore[arg-type]
        return (self.resolved_filename(), data, self.content_type)
