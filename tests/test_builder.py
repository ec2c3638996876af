from __future__ import annotations

import copy

import pytest

from lmt_proposals import builder
from lmt_proposals.blueprints import BlueprintLibrary
from lmt_proposals.errors import NumberingInvariantError, TemplateNotFoundError
from lmt_proposals.models import DocumentKind, ImageRef


def _model_with_days(count):
    model = builder.create_blank(DocumentKind.ITINERARY, "Five Day Escape", reference_id="LMT-ITN-2000")
    for position in range(1, count + 1):
        model = builder.append_day(model, heading=f"Stop {position}", narrative=f"Narrative {position}")
    return model


def test_remove_day_renumbers_remaining_days():
    model = _model_with_days(5)

    updated = builder.remove_day(model, 1)

    assert [day.day_number for day in updated.days] == [1, 2, 3, 4]
    assert [day.heading for day in updated.days] == ["Stop 1", "Stop 3", "Stop 4", "Stop 5"]
    assert len(model.days) == 5


def test_append_day_stops_at_cap():
    model = builder.create_blank(DocumentKind.ITINERARY, "Long Haul")
    for _ in range(12):
        model = builder.append_day(model)

    assert len(model.days) == builder.MAX_DAYS
    assert [day.day_number for day in model.days] == list(range(1, builder.MAX_DAYS + 1))


def test_append_day_uses_placeholder_and_leaves_input_untouched():
    model = builder.create_blank(DocumentKind.ITINERARY, "Weekend")

    updated = builder.append_day(model)

    assert model.days == []
    assert updated.days[0].heading == builder.PLACEHOLDER_HEADING
    assert updated.days[0].narrative == builder.PLACEHOLDER_NARRATIVE


def test_brochure_days_start_with_default_meals():
    model = builder.append_day(builder.create_blank(DocumentKind.BROCHURE, "Hills"))

    assert model.days[0].meals == ["Breakfast", "Dinner"]


def test_create_from_unknown_template_raises():
    with pytest.raises(TemplateNotFoundError) as excinfo:
        builder.create_from_template("atlantis_getaway")

    assert excinfo.value.template_id == "atlantis_getaway"


def test_create_from_template_clones_library_copy():
    library = BlueprintLibrary()

    first = builder.create_from_template("darjeeling_classic", library)
    first.days[0].heading = "Changed"
    second = builder.create_from_template("darjeeling_classic", library)

    assert first.reference_id.startswith("LMT-ITN-")
    assert first.recipient is None
    assert second.days[0].heading != "Changed"
    assert [day.day_number for day in second.days] == list(range(1, len(second.days) + 1))


def test_quotation_template_carries_pricing_terms():
    model = builder.create_from_template("signature_himalayan_escape")

    assert model.kind is DocumentKind.QUOTATION
    assert model.has_pricing
    assert model.pricing_terms.package_cost == 52000


def test_tags_toggle_membership():
    model = _model_with_days(1)

    tagged = builder.set_day_field(model, 0, "tags", "Tiger Hill")
    tagged = builder.set_day_field(tagged, 0, "tags", "Toy Train")
    untagged = builder.set_day_field(tagged, 0, "tags", "Tiger Hill")

    assert tagged.days[0].tags == ["Tiger Hill", "Toy Train"]
    assert untagged.days[0].tags == ["Toy Train"]


def test_set_day_field_rejects_unknown_field_and_bad_image():
    model = _model_with_days(1)

    with pytest.raises(ValueError):
        builder.set_day_field(model, 0, "weather", "Sunny")
    with pytest.raises(TypeError):
        builder.set_day_field(model, 0, "image", "https://example.com/photo.jpg")
    with pytest.raises(IndexError):
        builder.set_day_field(model, 3, "heading", "Nowhere")


def test_attach_lead_snapshots_contact(sample_lead):
    model = _model_with_days(1)

    attached = builder.attach_lead(model, sample_lead)
    sample_lead.name = "Asha Verma"
    sample_lead.phone = "000"

    assert attached.recipient_name == "Asha"
    assert attached.recipient_destination == "Darjeeling"
    assert attached.recipient_contact == "+91 98300-12345"
    assert builder.detach_lead(attached).recipient is None


def test_move_day_keeps_numbering_contiguous():
    model = _model_with_days(3)

    moved = builder.move_day(model, 2, -2)

    assert [day.heading for day in moved.days] == ["Stop 3", "Stop 1", "Stop 2"]
    assert [day.day_number for day in moved.days] == [1, 2, 3]


def test_duplicate_day_gives_copy_its_own_image():
    model = builder.set_day_field(_model_with_days(2), 0, "image", ImageRef(data=b"jpeg-bytes"))

    duplicated = builder.duplicate_day(model, 0)

    assert [day.day_number for day in duplicated.days] == [1, 2, 3]
    assert duplicated.days[1].image == duplicated.days[0].image
    assert duplicated.days[1].image is not duplicated.days[0].image


def test_ensure_contiguous_numbering_repairs_or_raises():
    model = _model_with_days(3)
    broken = copy.deepcopy(model)
    broken.days[1].day_number = 7

    repaired = builder.ensure_contiguous_numbering(broken)

    assert [day.day_number for day in repaired.days] == [1, 2, 3]
    assert builder.ensure_contiguous_numbering(model) is model
    with pytest.raises(NumberingInvariantError):
        builder.ensure_contiguous_numbering(broken, strict=True)


def test_set_details_and_lists():
    model = _model_with_days(1)

    updated = builder.set_details(model, title="Sikkim Circuit", travel_window="May 2026")
    updated = builder.set_list(updated, "inclusions", ["Breakfast", " ", "Airport transfer "])

    assert updated.title == "Sikkim Circuit"
    assert updated.travel_window == "May 2026"
    assert updated.inclusions == ["Breakfast", "Airport transfer"]
    with pytest.raises(ValueError):
        builder.set_details(model, kind="Quotation")


def test_set_discount_creates_pricing_terms():
    model = _model_with_days(1)

    discounted = builder.set_discount(model, 7.5)

    assert discounted.has_pricing
    assert discounted.pricing_terms.discount_percent == 7.5
    assert model.pricing_terms is None


def test_blueprint_library_saves_copy_without_recipient(sample_model):
    library = BlueprintLibrary()

    blueprint = library.save(sample_model, "asha_weekend", "Asha Weekend", "Darjeeling")

    assert blueprint.model.recipient is None
    assert sample_model.recipient is not None
    assert "asha_weekend" in library
    assert library.to_frame().loc[lambda frame: frame["Blueprint"] == "asha_weekend", "Days"].item() == 1
    with pytest.raises(ValueError):
        library.save(sample_model, "darjeeling_classic", "Overwrite")
