from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


# --------------------------------------------------
# BASE: snake_case in Python, camelCase on the wire
# --------------------------------------------------
class CamelModel(BaseModel):
    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


# --------------------------------------------------
# SUMMARIES embedded in other payloads
# --------------------------------------------------
class UserSummary(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    profile_image: Optional[str] = None


class FamilySummary(CamelModel):
    id: str
    name: str


class EventSummary(CamelModel):
    id: str
    family_id: str
    title: str
    start_date: Optional[datetime] = None
