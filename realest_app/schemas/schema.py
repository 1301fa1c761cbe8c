from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from models.enums import (
    DuplicateResolution,
    MLAction,
    MLValidationStatus,
    NotificationType,
    PropertyStatus,
    RiskLevel,
    VettingDecision,
)


def _strip_or_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class MLValidationUpdateSchema(BaseModel):
    action: MLAction
    ml_confidence_score: Optional[float] = Field(default=None, ge=0, le=1)
    ml_validation_notes: Optional[str] = None
    admin_notes: Optional[str] = None


class VettingDecisionSchema(BaseModel):
    status: VettingDecision
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None
    verified_at: Optional[datetime] = None

    @field_validator("rejection_reason", mode="before")
    @classmethod
    def blank_reason_is_missing(cls, v):
        return _strip_or_none(v)

    @field_validator("verified_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]):
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class DuplicateResolutionSchema(BaseModel):
    action: DuplicateResolution
    master_property_id: Optional[uuid.UUID] = None
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None

    @field_validator("rejection_reason", mode="before")
    @classmethod
    def blank_reason_is_missing(cls, v):
        return _strip_or_none(v)


class PropertyCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=255)
    description: Optional[str] = None
    address: str = Field(..., min_length=3, max_length=255)
    state: str = Field(..., min_length=2, max_length=100)
    lga: Optional[str] = Field(default=None, max_length=100)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    price: Optional[Decimal] = Field(default=None, gt=0)
    submit: bool = False

    @field_validator("title", "address", "state", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("lga", mode="before")
    @classmethod
    def strip_lga(cls, v):
        return _strip_or_none(v)

    @model_validator(mode="after")
    def coordinates_come_in_pairs(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together.")
        return self


class PropertyOut(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: Optional[str] = None
    address: str
    state: str
    lga: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price: Optional[Decimal] = None
    status: PropertyStatus

    ml_validation_status: Optional[MLValidationStatus] = None
    ml_confidence_score: Optional[float] = None
    ml_validation_notes: Optional[str] = None
    ml_validated_at: Optional[datetime] = None

    vetted_by: Optional[uuid.UUID] = None
    vetted_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    admin_notes: Optional[str] = None

    flagged_as_duplicate: bool = False
    duplicate_review_notes: Optional[str] = None
    duplicate_resolution: Optional[DuplicateResolution] = None
    duplicate_resolved_at: Optional[datetime] = None
    duplicate_of_id: Optional[uuid.UUID] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("flagged_as_duplicate", mode="before")
    @classmethod
    def unset_flag_is_false(cls, v):
        return bool(v)


class DuplicateCandidateOut(BaseModel):
    id: uuid.UUID
    title: str
    address: str
    state: str
    lga: Optional[str] = None
    status: PropertyStatus
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DuplicateGroups(BaseModel):
    exact_address: List[DuplicateCandidateOut] = Field(default_factory=list)
    nearby_properties: List[DuplicateCandidateOut] = Field(default_factory=list)
    similar_titles: List[DuplicateCandidateOut] = Field(default_factory=list)


class DuplicateCheckOut(BaseModel):
    property_id: uuid.UUID
    risk_level: RiskLevel
    total_duplicates: int
    duplicates: DuplicateGroups
    recommendations: List[str]


class MLValidationResult(BaseModel):
    property: PropertyOut
    action_taken: MLAction
    new_status: PropertyStatus
    message: str
    side_effect_failures: List[str] = Field(default_factory=list)


class MLValidationResponse(BaseModel):
    success: bool = True
    data: MLValidationResult


class TransitionResponse(BaseModel):
    data: PropertyOut
    message: str
    side_effect_failures: List[str] = Field(default_factory=list)


class QueuePagination(BaseModel):
    page: int
    per_page: int
    total: int
    total_pages: int
    has_more: bool


class ValidationQueueOut(BaseModel):
    queue: str
    properties: List[PropertyOut]
    pagination: QueuePagination


class VettingReportOut(BaseModel):
    period: str
    start_date: datetime
    end_date: datetime
    decisions: dict[str, int]
    total_decided: int
    approval_rate: float
    pending: dict[str, int]


class NotificationOut(BaseModel):
    id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class NotificationPagination(BaseModel):
    limit: int
    offset: int
    total: int
    has_more: bool


class NotificationPage(BaseModel):
    notifications: List[NotificationOut]
    pagination: NotificationPagination
    unread_count: int
