"""
Multipart detection and encoding for parameter sets carrying files.
"""

import json
from typing import Any, Mapping

from pydantic import BaseModel

from fb_graph.models.upload import UploadableParameter


class MultipartBody(BaseModel):
    """Split form: plain fields go to httpx ``data=``, uploads to ``files=``."""

    data: dict[str, str]
    files: dict[str, tuple[str, bytes, str]]


def encode_value(value: Any) -> str:
    """Strings go out verbatim; anything else is JSON-encoded, falling back
    to ``str()`` for objects JSON has no form for."""
    return value if isinstance(value, str) else json.dumps(value, default=str)


class MultipartEncoder:
    @staticmethod
    def requires_multipart(params: Mapping[str, Any]) -> bool:
        return any(isinstance(value, UploadableParameter) for value in params.values())

    @staticmethod
    def encode(params: Mapping[str, Any]) -> MultipartBody:
        data: dict[str, str] = {}
        files: dict[str, tuple[str, bytes, str]] = {}
        for key, value in params.items():
            if isinstance(value, UploadableParameter):
                files[str(key)] = value.to_upload()
            else:
                data[str(key)] = encode_value(value)
        return MultipartBody(data=data, files=files)
