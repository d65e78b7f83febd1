from typing import Literal, Optional

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    sender: Literal["user", "bot"]
    text: str


class ChatIn(BaseModel):
    message: str = Field(min_length=1)
    history: list[ChatMessage] = []


class ChatOut(BaseModel):
    reply: str


class DescribeIn(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    current: Optional[str] = None


class DescribeOut(BaseModel):
    description: str
