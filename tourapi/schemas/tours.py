# tourapi/schemas/tours.py
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class TourAccessOut(BaseModel):
    tour_id: int
    read_only: bool
    post_tour_access: bool
    access_ends_at: datetime


class TourStatusIn(BaseModel):
    status: str


class TourStatusOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
