# familyhub/schemas/media_schema.py

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, Field

from familyhub.schemas.base import CamelModel


# -----------------------------------------------------
# UNIVERSAL MEDIA OUTPUT
# -----------------------------------------------------
class MediaOut(CamelModel):
    id: str
    url: str
    thumb_url: Optional[str] = None
    type: str
    name: str
    size: int
    mime_type: str

    metadata: dict = Field(
        default_factory=dict,
        validation_alias=AliasChoices("media_metadata", "metadata"),
    )

    uploaded_by: str
    created_at: Optional[datetime] = None
