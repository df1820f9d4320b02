"""
Data models for PlanningAlerts.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Alert:
    """A subscriber's saved geographic watch."""

    email: str
    address: str
    lat: float
    lng: float
    radius_meters: float
    id: Optional[int] = None
    confirm_id: Optional[str] = None
    confirmed: bool = True
    unsubscribed: bool = False
    last_sent: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass
class Application:
    """Planning application."""

    address: str
    description: Optional[str] = None
    council_reference: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    id: Optional[int] = None
    date_scraped: Optional[datetime] = None


@dataclass
class Comment:
    """Public comment on a planning application."""

    application_id: int
    name: str
    text: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class AlertMatch:
    """An application found within an alert's radius by the geographic matcher."""

    alert_id: int
    application_id: int
    matched_at: datetime
    id: Optional[int] = None
