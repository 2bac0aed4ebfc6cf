# app/schemas/token.py
from pydantic import BaseModel
from typing import Optional


class TokenPayload(BaseModel):
    sub: str  # identity provider's user id
    email: Optional[str] = None
    exp: int

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }
