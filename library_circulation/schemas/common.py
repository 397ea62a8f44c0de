from typing import Optional
from pydantic import BaseModel


class MessageResponse(BaseModel):
    msg: str
    id: Optional[str] = None
