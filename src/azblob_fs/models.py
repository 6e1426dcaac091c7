"""Domain records for blobs, blob properties and versions."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from .constants import CURRENT_VERSION, DEFAULT_CONTENT_TYPE


class BlobInfo(BaseModel):
    """One entry of a container listing."""
    name: str
    size: int = 0
    last_modified: Optional[datetime] = None
    content_type: str = DEFAULT_CONTENT_TYPE
    etag: Optional[str] = None


class BlobProperties(BaseModel):
    """Result of a HEAD probe on a blob."""
    size: int = 0
    content_type: str = DEFAULT_CONTENT_TYPE
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class VersionRecord(BaseModel):
    """
    One version of a blob.

    version_id is either "current" (the live object at the primary path)
    or the decimal Unix timestamp at which a prior body was archived.
    """
    version_id: str
    is_current: bool = False
    last_modified: Optional[datetime] = None
    size: int = 0
    content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def timestamp(self) -> Optional[int]:
        """Archive timestamp, or None for the current version."""
        if self.version_id == CURRENT_VERSION:
            return None
        return int(self.version_id)
