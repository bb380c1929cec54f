"""Schemas for file listings and links served to site visitors."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class FileListing(BaseModel):
    """A source file as shown to site visitors.

    Example:
    {
        "id": "id:a4ayc_80_OEAAAAAAAAAXw",
        "name": "Price List",
        "type": ".PDF",
        "path": "https://s3.amazonaws.com/example-bucket/catalog/price list.pdf",
        "modified": "2024-05-12T15:50:38Z"
    }
    """

    id: Optional[str] = None
    name: str
    type: str
    path: str
    modified: Optional[datetime] = None


class FileLink(BaseModel):
    """Public and signed download links for a mirrored file."""

    link: str
    download_link: str = Field(serialization_alias="downloadLink")


class MessageResponse(BaseModel):
    message: str
