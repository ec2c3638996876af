from __future__ import annotations

from pathlib import Path

import pytest

import render_bootstrap
from lmt_proposals import assets, builder
from lmt_proposals.access import User, UserRole
from lmt_proposals.errors import OperationInProgressError
from lmt_proposals.layout import Table
from lmt_proposals.models import DocumentKind


def test_navigation_follows_role_capabilities(app_module):
    sales = User(id="priya", name="Priya", role=UserRole.SALES)
    owner = User(id="owner", name="Owner", role=UserRole.SUPER_ADMIN)

    sales_pages = app_module._navigation_pages(sales)
    owner_pages = app_module._navigation_pages(owner)

    assert list(sales_pages) == ["leads", "itinerary", "quotation"]
    assert list(owner_pages) == ["overview", "leads", "itinerary", "quotation", "admin"]
    assert sales_pages["leads"] == "Lead Pipeline"


def test_pages_with_the_same_label_stay_reachable(app_module):
    owner = User(id="owner", name="Owner", role=UserRole.SUPER_ADMIN)
    app_module.CONTENT_STORE.update("menu_itinerary", "Builder")
    app_module.CONTENT_STORE.update("menu_quotation", "Builder")
    try:
        pages = app_module._navigation_pages(owner)
    finally:
        app_module.CONTENT_STORE.reset("menu_itinerary")
        app_module.CONTENT_STORE.reset("menu_quotation")

    assert pages["itinerary"] == pages["quotation"] == "Builder"
    assert len(pages) == 5


def test_logo_falls_back_when_override_is_not_an_image_source(app_module, make_image):
    default_logo = app_module.DEFAULT_CONTENT["agency_logo"]
    inline = assets.normalize_image(make_image(40, 20)).as_data_uri()
    try:
        app_module.CONTENT_STORE.update("agency_logo", "our new logo")
        assert app_module.logo_source() == default_logo
        app_module.CONTENT_STORE.update("agency_logo", inline)
        assert app_module.logo_source() == inline
    finally:
        app_module.CONTENT_STORE.reset("agency_logo")

    assert app_module.logo_source() == default_logo


def test_clearing_a_label_restores_the_default_once(app_module):
    store = app_module.CONTENT_STORE
    default = app_module.DEFAULT_CONTENT["btn_logout"]

    assert app_module.save_content("btn_logout", "Sign out") is True
    assert app_module.save_content("btn_logout", "Sign out") is False
    assert app_module.save_content("btn_logout", "") is True
    assert "btn_logout" not in store.snapshot()
    assert app_module.save_content("btn_logout", "") is False
    assert app_module.save_content("btn_logout", default) is False
    assert store.get("btn_logout") == default


def test_blank_brochure_starts_on_a_region(app_module):
    brochure = app_module.start_blank(DocumentKind.BROCHURE)
    quotation = app_module.start_blank(DocumentKind.QUOTATION)

    assert brochure.kind is DocumentKind.BROCHURE
    assert brochure.has_pricing
    assert [day.heading for day in brochure.days] == [app_module.LOGISTICS_REGIONS[0]]
    assert brochure.days[0].meals
    assert quotation.kind is DocumentKind.QUOTATION
    assert len(quotation.days) == 1


def test_bootstrap_admin_can_sign_in(app_module):
    user, error = app_module.ACCOUNTS.authenticate("test_admin", "secret123")

    assert error is None
    assert user.role is UserRole.SUPER_ADMIN


def test_upload_day_image_attaches_normalised_photo(app_module, sample_model, make_image):
    updated = app_module.upload_day_image(sample_model, 0, make_image(2400, 1200), app_module.ITINERARY_SLOT)

    image = updated.days[0].image
    assert image.is_inline
    assert (image.width, image.height) == (1000, 500)
    assert sample_model.days[0].image is None


def test_upload_is_refused_while_slot_is_busy(app_module, sample_model, make_image):
    key = (app_module.ITINERARY_SLOT, sample_model.reference_id, 0)

    with app_module.OPERATION_GUARD.hold(key):
        with pytest.raises(OperationInProgressError):
            app_module.upload_day_image(sample_model, 0, make_image(10, 10), app_module.ITINERARY_SLOT)

    assert not app_module.OPERATION_GUARD.is_busy(key)


def test_prepare_document_export_produces_named_pdf(app_module, sample_model):
    export = app_module.prepare_document_export(sample_model, app_module.ITINERARY_SLOT)

    assert export.is_pdf
    assert export.filename == "Itinerary_Asha.pdf"
    assert export.page_order == ("cover", "day-1")


def test_build_layout_caps_discount_at_agency_ceiling(app_module):
    model = builder.set_discount(builder.create_from_template("signature_himalayan_escape"), 50)

    layout = app_module.build_layout(model)

    summary = layout.pages[-1]
    table = next(block for block in summary.blocks if isinstance(block, Table))
    assert layout.page_keys[-1] == "summary"
    assert table.rows[1][0] == "Discount (10%)"


def test_render_bootstrap_builds_streamlit_command():
    command = render_bootstrap.build_command(Path("/srv/app/main.py"), "9000")

    assert command[1:4] == ["-m", "streamlit", "run"]
    assert command[command.index("--server.port") + 1] == "9000"
    assert command[-1] == "true"
