"""In-memory lead store consumed by the proposal builders."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional

import pandas as pd


class LeadStatus(str, Enum):
    UNQUALIFIED = "Unqualified"
    CONTACTED = "Contacted"
    QUALIFIED = "Qualified"
    PROPOSAL_SENT = "Proposal Sent"
    DECISION_PENDING = "Decision Pending"
    BOOKED = "Booked"
    LOST = "Lost"


class LeadSource(str, Enum):
    FACEBOOK = "Facebook"
    WEBSITE = "Website"
    GOOGLE = "Google"
    SEO = "SEO"
    MANUAL = "Manual"
    THIRD_PARTY = "Third Party"


@dataclass
class Lead:
    id: str
    name: str
    phone: str = ""
    email: str = ""
    destination: str = ""
    source: LeadSource = LeadSource.MANUAL
    status: LeadStatus = LeadStatus.UNQUALIFIED
    budget: str = ""
    assigned_agent: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    notes: str = ""
    travel_dates: Optional[str] = None

    @property
    def phone_digits(self) -> str:
        return re.sub(r"\D", "", self.phone or "")


def _seed_leads() -> List[Lead]:
    return [
        Lead(
            id="L101",
            name="Rahul Sharma",
            email="rahul.s@example.com",
            phone="9876543210",
            source=LeadSource.FACEBOOK,
            status=LeadStatus.CONTACTED,
            destination="Darjeeling",
            budget="₹45,000",
            assigned_agent="Sudip Thapa",
            created_at=datetime.now() - timedelta(days=1),
            notes="Inquiry via Facebook Ad. Interested in honeymoon packages.",
        )
    ]


class LeadStore:
    """Keeps leads for the current session; documents only snapshot them."""

    def __init__(self, leads: Optional[List[Lead]] = None):
        seed = _seed_leads() if leads is None else leads
        self._leads: Dict[str, Lead] = {lead.id: lead for lead in seed}

    def get(self, lead_id: str) -> Optional[Lead]:
        return self._leads.get(lead_id)

    def list(self) -> List[Lead]:
        return sorted(self._leads.values(), key=lambda lead: lead.created_at, reverse=True)

    def add(self, lead: Lead) -> Lead:
        if not lead.name.strip():
            raise ValueError("Lead name is required.")
        if lead.id in self._leads:
            raise ValueError(f"Lead {lead.id} already exists.")
        self._leads[lead.id] = lead
        return lead

    def next_id(self) -> str:
        stamp = int(datetime.now().timestamp() * 1000)
        candidate = f"L{stamp % 10000:04d}"
        while candidate in self._leads:
            stamp += 1
            candidate = f"L{stamp % 10000:04d}"
        return candidate

    def to_frame(self) -> pd.DataFrame:
        columns = ["ID", "Name", "Phone", "Destination", "Source", "Status", "Agent", "Created"]
        rows = [
            {
                "ID": lead.id,
                "Name": lead.name,
                "Phone": lead.phone,
                "Destination": lead.destination,
                "Source": lead.source.value,
                "Status": lead.status.value,
                "Agent": lead.assigned_agent,
                "Created": lead.created_at,
            }
            for lead in self.list()
        ]
        return pd.DataFrame(rows, columns=columns)
