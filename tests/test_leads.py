from __future__ import annotations

import pytest

from lmt_proposals.leads import Lead, LeadStatus, LeadStore


def test_store_is_seeded_with_demo_lead():
    store = LeadStore()

    lead = store.get("L101")

    assert lead.name == "Rahul Sharma"
    assert lead.phone_digits == "9876543210"
    assert lead.status is LeadStatus.CONTACTED


def test_add_rejects_blank_names_and_duplicates():
    store = LeadStore([])
    store.add(Lead(id="L1", name="Asha"))

    with pytest.raises(ValueError):
        store.add(Lead(id="L2", name="   "))
    with pytest.raises(ValueError):
        store.add(Lead(id="L1", name="Asha again"))


def test_next_id_never_collides():
    store = LeadStore([])
    for _ in range(5):
        store.add(Lead(id=store.next_id(), name="Guest"))

    assert len({lead.id for lead in store.list()}) == 5
    assert all(lead.id.startswith("L") for lead in store.list())


def test_frame_has_pipeline_columns():
    frame = LeadStore().to_frame()

    assert list(frame.columns) == ["ID", "Name", "Phone", "Destination", "Source", "Status", "Agent", "Created"]
    assert frame.loc[0, "Status"] == "Contacted"
