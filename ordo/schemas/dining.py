from typing import Literal, Optional

from pydantic import BaseModel, Field


class ZoneIn(BaseModel):
    name: str = Field(min_length=1)
    rows: int = Field(default=4, ge=1)
    cols: int = Field(default=4, ge=1)


class ZoneOut(ZoneIn):
    id: str


class TableIn(BaseModel):
    zone_id: str
    name: str = Field(min_length=1)
    row: int = Field(default=1, ge=1)
    col: int = Field(default=1, ge=1)
    width: int = Field(default=1, ge=1)
    height: int = Field(default=1, ge=1)
    shape: Literal["square", "round"] = "square"


class TableOut(TableIn):
    id: str
    status: Literal["available", "occupied"] = "available"


class TableStatusIn(BaseModel):
    status: Literal["available", "occupied"]


class TablePatch(BaseModel):
    name: Optional[str] = None
    row: Optional[int] = Field(default=None, ge=1)
    col: Optional[int] = Field(default=None, ge=1)
    width: Optional[int] = Field(default=None, ge=1)
    height: Optional[int] = Field(default=None, ge=1)
    shape: Optional[Literal["square", "round"]] = None
