from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RegistrationRequest(BaseModel):
    user_id: int = Field(ge=1)


class RegistrationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    user_id: int
    registered_at: datetime
