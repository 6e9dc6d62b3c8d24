"""
Normalized transport result.
"""

from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field


class ResponseEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: int
    body: str = ""
    headers: httpx.Headers = Field(default_factory=httpx.Headers)

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name)
