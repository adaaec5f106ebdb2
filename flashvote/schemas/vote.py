"""
Pydantic schemas for vote submission and the read-side payloads.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, StrictBool


class VoteCreate(BaseModel):
    subject_id: str = Field(..., min_length=1, max_length=36)
    location_id: Optional[str] = Field(None, max_length=36)
    # StrictBool: "true", 1 and friends are rejected
    choice: StrictBool


class VoteResponse(BaseModel):
    id: str
    subject_id: str
    location_id: Optional[str]
    user_id: Optional[str]
    choice: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class VoteCounts(BaseModel):
    positive: int = 0
    negative: int = 0


class BatchVotesRequest(BaseModel):
    subject_ids: list[str] = Field(..., min_length=1)
    location_id: Optional[str] = None


class BatchVotesResponse(BaseModel):
    results: dict[str, VoteCounts]


class TimeSeriesPoint(BaseModel):
    timestamp: datetime
    value: float


class TimeSeriesResponse(BaseModel):
    time_series_data: list[TimeSeriesPoint] = Field(serialization_alias="timeSeriesData")
    running_average: list[TimeSeriesPoint] = Field(serialization_alias="runningAverage")


class VoteHistoryEntry(BaseModel):
    id: str
    choice: bool
    created_at: datetime
    subject_id: str
    subject_label: str
    pos_label: str
    neg_label: str
    event_title: str
    event_slug: str
    item_name: Optional[str] = None


class VoteHistoryResponse(BaseModel):
    votes: list[VoteHistoryEntry]
    total: int
    page: int
    page_size: int
    total_pages: int
