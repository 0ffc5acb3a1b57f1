"""
Data model for Weather Notify.

Subscription is the only persisted entity; WeatherData is what the
weather provider returns and what update emails carry.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class Frequency(str, Enum):
    """Frequency bucket deciding which scheduler job a subscription belongs to."""
    HOURLY = "hourly"
    DAILY = "daily"


def utcnow_iso() -> str:
    return datetime.utcnow().isoformat()


@dataclass
class Subscription:
    email: str
    city: str
    frequency: Frequency
    token: str
    confirmed: bool = False
    id: Optional[int] = None
    created_at: str = field(default_factory=utcnow_iso)
    updated_at: str = field(default_factory=utcnow_iso)

    @property
    def state(self) -> str:
        return "confirmed" if self.confirmed else "pending"

    @classmethod
    def from_row(cls, row) -> "Subscription":
        return cls(
            id=row["id"],
            email=row["email"],
            city=row["city"],
            frequency=Frequency(row["frequency"]),
            token=row["token"],
            confirmed=bool(row["confirmed"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


@dataclass
class WeatherData:
    temperature: float
    humidity: int
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NewSubscription(BaseModel):
    """Validated subscribe input."""
    email: EmailStr
    city: str = Field(min_length=1, max_length=100)
    frequency: Frequency

    @field_validator("city", mode="before")
    @classmethod
    def strip_city(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("frequency", mode="before")
    @classmethod
    def normalize_frequency(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value
