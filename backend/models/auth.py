from pydantic import BaseModel, Field
from typing import Optional


class CurrentUser(BaseModel):
    user_id: str = Field(..., description="Subject of the verified bearer token")
    email: Optional[str] = Field(None, description="Email claim, when the token carries one")
