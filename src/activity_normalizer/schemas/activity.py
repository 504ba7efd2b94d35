"""Pydantic models for the canonical Activity schema.

Every converted event, class, camp or venue is represented as an
``Activity``. Downstream consumers read only this shape, regardless of
how the originating source named its fields.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


# ── Enums ────────────────────────────────────────────────────────────


class ActivityType(str, Enum):
    """Kind of activity."""

    CLASS = "class"
    CAMP = "camp"
    EVENT = "event"
    PERFORMANCE = "performance"
    FREE_ACTIVITY = "free-activity"


class ActivityCategory(str, Enum):
    """Top-level browsing category."""

    ARTS_CREATIVITY = "arts-creativity"
    ACTIVE_SPORTS = "active-sports"
    EDUCATIONAL_STEM = "educational-stem"
    ENTERTAINMENT_EVENTS = "entertainment-events"
    CAMPS_PROGRAMS = "camps-programs"
    FREE_COMMUNITY = "free-community"


class AgeGroupCategory(str, Enum):
    INFANT = "infant"
    TODDLER = "toddler"
    PRESCHOOL = "preschool"
    ELEMENTARY = "elementary"
    TWEEN = "tween"
    TEEN = "teen"
    ADULT = "adult"
    ALL_AGES = "all-ages"


class ScheduleType(str, Enum):
    ONE_TIME = "one-time"
    RECURRING = "recurring"
    MULTI_DAY = "multi-day"
    ONGOING = "ongoing"


class PricingType(str, Enum):
    FREE = "free"
    PAID = "paid"
    DONATION = "donation"
    VARIABLE = "variable"


class VenueType(str, Enum):
    INDOOR = "indoor"
    OUTDOOR = "outdoor"
    BOTH = "both"


class RegistrationStatus(str, Enum):
    OPEN = "open"
    WAITLIST = "waitlist"
    CLOSED = "closed"
    SOLD_OUT = "sold-out"


class ActivityStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


# ── Nested models ────────────────────────────────────────────────────


class TimeSlot(BaseModel):
    """A start/end time pair in 24-hour ``HH:MM`` form."""

    start_time: str = Field(description="HH:MM (24-hour)")
    end_time: str = Field(default="", description="HH:MM (24-hour), empty if open-ended")
    age_group: str = Field(default="", description="Age group this slot is reserved for")


class Schedule(BaseModel):
    """When an activity happens."""

    type: ScheduleType = Field(default=ScheduleType.ONE_TIME)
    start_date: str = Field(default="", description="ISO date (YYYY-MM-DD)")
    end_date: str = Field(default="", description="ISO date, optional")
    start_time: str = Field(default="", description="HH:MM (24-hour)")
    end_time: str = Field(default="", description="HH:MM (24-hour)")
    frequency: str = Field(default="", description="daily|weekly|monthly|seasonal")
    days_of_week: List[str] = Field(default_factory=list)
    times: List[TimeSlot] = Field(default_factory=list)
    duration: str = Field(default="", description="Free text, e.g. '45 minutes'")
    timezone: str = Field(default="America/Los_Angeles")


class AgeGroup(BaseModel):
    """Target age range."""

    category: AgeGroupCategory
    min_age: int = 0
    max_age: int = 99
    unit: str = Field(default="years", description="months|years")
    description: str = ""


class Location(BaseModel):
    """Venue information."""

    name: str = ""
    address: str = ""
    neighborhood: str = ""
    city: str = ""
    region: str = ""
    zip_code: str = ""
    venue_type: VenueType = VenueType.INDOOR


class Pricing(BaseModel):
    """Cost information. ``type`` stays unset when no price was found."""

    type: Optional[PricingType] = None
    cost: float = 0.0
    currency: str = "USD"
    unit: str = Field(default="per-person", description="per-person|per-family|per-session|...")
    description: str = ""


class Registration(BaseModel):
    required: bool = False
    method: str = Field(default="walk-in", description="online|phone|in-person|walk-in")
    url: str = ""
    status: RegistrationStatus = RegistrationStatus.OPEN


class Provider(BaseModel):
    name: str = ""
    type: str = "external"
    website: str = ""
    verified: bool = False


class Source(BaseModel):
    """Where the record was scraped from."""

    url: str = ""
    domain: str = ""
    scraped_at: Optional[datetime] = None
    last_checked: Optional[datetime] = None
    reliability: str = Field(default="medium", description="high|medium|low")


# ── Activity ─────────────────────────────────────────────────────────


class Activity(BaseModel):
    """Canonical family activity produced by one successful conversion."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = ""
    description: str = ""

    type: Optional[ActivityType] = None
    category: Optional[ActivityCategory] = None
    subcategory: str = ""

    schedule: Schedule = Field(default_factory=Schedule)
    age_groups: List[AgeGroup] = Field(default_factory=list)
    location: Location = Field(default_factory=Location)
    pricing: Pricing = Field(default_factory=Pricing)
    registration: Registration = Field(default_factory=Registration)
    tags: List[str] = Field(default_factory=list)

    provider: Provider = Field(default_factory=Provider)
    source: Source = Field(default_factory=Source)

    status: ActivityStatus = ActivityStatus.ACTIVE
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
