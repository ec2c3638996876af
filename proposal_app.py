"""Streamlit proposal studio for the Let Me Travel sales desk."""

from __future__ import annotations

import asyncio
import os
from typing import Dict, Optional

import pandas as pd
import streamlit as st
from dotenv import load_dotenv
from streamlit.components.v1 import html as st_components_html

from lmt_proposals import builder
from lmt_proposals.access import Capability, User, UserRole, can, require
from lmt_proposals.assets import OperationGuard, normalize_image_async
from lmt_proposals.blueprints import BlueprintLibrary
from lmt_proposals.catalog import (
    COVER_BANNER_URL,
    DEFAULT_MEALS,
    LOGISTICS_REGIONS,
    activity_suggestions,
    gallery_images,
)
from lmt_proposals.config import AgencySettings, configure_logging, load_config
from lmt_proposals.errors import OperationInProgressError, ProposalError
from lmt_proposals.export import (
    DocumentExport,
    ReportLabRasterizer,
    document_filename,
    export_as_document_async,
    export_as_message,
    fetch_remote_image,
)
from lmt_proposals.identity import AccountDirectory
from lmt_proposals.layout import Layout, render_html, render_layout, verify_page_order
from lmt_proposals.leads import Lead, LeadSource, LeadStatus, LeadStore
from lmt_proposals.models import DocumentKind, DocumentModel, HotelOption, ImageRef, PricingTerms, VehicleOption
from lmt_proposals.pricing import format_currency, pricing_summary
from lmt_proposals.storage import DEFAULT_CONTENT, ContentStore, LocalStore, SessionStore, SettingsStore


# ---------------------------------------------------------------------------
# Global application services
# ---------------------------------------------------------------------------


load_dotenv()
CONFIG = load_config()
configure_logging(CONFIG.log_level)
LOCAL_STORE = LocalStore(CONFIG.state_dir)
CONTENT_STORE = ContentStore(LOCAL_STORE)
SESSION_STORE = SessionStore(LOCAL_STORE)
SETTINGS_STORE = SettingsStore(LOCAL_STORE, CONFIG.agency)
ACCOUNTS = AccountDirectory.from_env(CONFIG.data_dir / "accounts.json")
BLUEPRINTS = BlueprintLibrary()
OPERATION_GUARD = OperationGuard()

ITINERARY_SLOT = "itinerary_model"
QUOTATION_SLOT = "quotation_model"
VEHICLE_TYPES = ("4 Seater", "7 Seater", "Tempo Traveller", "Luxury SUV")


def rerun() -> None:
    """Trigger a Streamlit rerun across supported versions."""

    if hasattr(st, "rerun"):
        st.rerun()
        return
    if hasattr(st, "experimental_rerun"):
        st.experimental_rerun()
        return
    raise RuntimeError("Streamlit rerun function not available")


def flash(level: str, message: str) -> None:
    st.session_state.setdefault("flash_messages", []).append((level, message))


def show_flash_messages() -> None:
    for level, message in st.session_state.pop("flash_messages", []):
        getattr(st, level, st.info)(message)


def label(key: str) -> str:
    return CONTENT_STORE.get(key)


# ---------------------------------------------------------------------------
# Session and navigation
# ---------------------------------------------------------------------------


def current_user() -> Optional[User]:
    """Return the signed-in user, restoring a remembered session once."""

    payload = st.session_state.get("user")
    if payload is None and not st.session_state.get("session_restored"):
        st.session_state["session_restored"] = True
        payload = SESSION_STORE.load()
        if payload is not None:
            st.session_state["user"] = payload
    if payload is None:
        return None
    user = User.from_dict(payload)
    if user is None:
        SESSION_STORE.clear()
        st.session_state.pop("user", None)
    return user


def login_screen() -> None:
    st.title(label("agency_name"))
    st.caption("Itinerary and quotation studio")
    if not len(ACCOUNTS):
        st.info("No accounts are configured yet. Set LMT_ADMIN_PASS and restart the app.")
    with st.form("login_form"):
        cols = st.columns(2)
        with cols[0]:
            username = st.text_input("Username", help="Use your assigned account name.")
        with cols[1]:
            password = st.text_input("Password", type="password")
        remember = st.checkbox("Keep me signed in on this device", value=True)
        submitted = st.form_submit_button("Login", use_container_width=True)
    if submitted:
        user, error = ACCOUNTS.authenticate(username, password)
        if user:
            st.session_state["user"] = user.to_dict()
            if remember:
                SESSION_STORE.save(user.to_dict())
            flash("success", f"Welcome back, {user.name}")
            rerun()
        else:
            st.error(error or "Invalid credentials")


def logout() -> None:
    SESSION_STORE.clear()
    for key in ("user", "active_page", ITINERARY_SLOT, QUOTATION_SLOT, "edit_mode"):
        st.session_state.pop(key, None)


def _navigation_pages(user: User) -> Dict[str, str]:
    """Page slug to menu label, computed from the user's capabilities."""

    entries = (
        (Capability.VIEW_OVERVIEW, "menu_overview", "overview"),
        (Capability.MANAGE_LEADS, "menu_leads", "leads"),
        (Capability.BUILD_ITINERARY, "menu_itinerary", "itinerary"),
        (Capability.BUILD_QUOTATION, "menu_quotation", "quotation"),
        (Capability.MANAGE_SETTINGS, "menu_admin", "admin"),
    )
    pages: Dict[str, str] = {}
    for capability, content_key, slug in entries:
        if can(user, capability):
            pages[slug] = label(content_key)
    return pages


def logo_source() -> str:
    """The agency logo as an image source, or the default when unusable."""

    value = label("agency_logo")
    try:
        ImageRef.from_source(value)
    except ValueError:
        return DEFAULT_CONTENT["agency_logo"]
    return value.strip()


def sidebar(user: User, pages: Dict[str, str]) -> None:
    slugs = list(pages)
    st.sidebar.image(logo_source(), width=140)
    st.sidebar.caption(label("sidebar_admin_label"))
    current = st.session_state.get("active_page")
    if current not in pages:
        current = slugs[0]
    choice = st.sidebar.radio("Go to", slugs, index=slugs.index(current), format_func=pages.get)
    st.session_state["active_page"] = choice
    st.sidebar.write("---")
    st.sidebar.write(f"Logged in as **{user.name}** ({user.role.value})")
    if can(user, Capability.EDIT_CONTENT):
        st.sidebar.toggle("Edit mode", key="edit_mode", help="Rename menu items and labels in place.")
    if st.sidebar.button(label("btn_logout")):
        logout()
        rerun()


def save_content(key: str, value: str) -> bool:
    """Store one label override; a blank value restores the default."""

    if not value.strip():
        if key not in CONTENT_STORE.snapshot():
            return False
        CONTENT_STORE.reset(key)
        return True
    if value == CONTENT_STORE.get(key):
        return False
    CONTENT_STORE.update(key, value)
    return True


def _edit_mode_panel() -> None:
    """Inline overrides for the sidebar labels while edit mode is on."""

    with st.sidebar.expander("Edit labels", expanded=True):
        for key in ("sidebar_admin_label", "menu_overview", "menu_leads", "menu_itinerary", "menu_quotation", "menu_admin", "btn_logout"):
            save_content(key, st.text_input(key, value=label(key), key=f"edit_{key}"))


# ---------------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------------


def lead_store() -> LeadStore:
    if "lead_store" not in st.session_state:
        st.session_state["lead_store"] = LeadStore()
    return st.session_state["lead_store"]


def render_overview(user: User) -> None:
    st.header(label("menu_overview"))
    leads = lead_store().to_frame()
    cols = st.columns(3)
    cols[0].metric("Total leads", len(leads))
    cols[1].metric("Booked", int((leads["Status"] == LeadStatus.BOOKED.value).sum()) if not leads.empty else 0)
    cols[2].metric("Blueprints", len(BLUEPRINTS.entries()))
    if not leads.empty:
        st.subheader("Pipeline by status")
        st.bar_chart(leads.groupby("Status").size())


def render_leads(user: User) -> None:
    require(user, Capability.MANAGE_LEADS)
    st.header(label("menu_leads"))
    store = lead_store()
    st.dataframe(store.to_frame(), use_container_width=True, hide_index=True)

    with st.form("add_lead_form", clear_on_submit=True):
        st.subheader("Add lead")
        cols = st.columns(3)
        name = cols[0].text_input("Name")
        phone = cols[1].text_input("Phone")
        destination = cols[2].text_input("Destination")
        cols = st.columns(3)
        email = cols[0].text_input("Email")
        source = cols[1].selectbox("Source", [item.value for item in LeadSource], index=len(LeadSource) - 2)
        budget = cols[2].text_input("Budget")
        notes = st.text_area("Notes")
        submitted = st.form_submit_button("Save lead")
    if submitted:
        try:
            lead = store.add(
                Lead(
                    id=store.next_id(),
                    name=name.strip(),
                    phone=phone.strip(),
                    email=email.strip(),
                    destination=destination.strip(),
                    source=LeadSource(source),
                    budget=budget.strip(),
                    assigned_agent=user.name,
                    notes=notes.strip(),
                )
            )
        except ValueError as exc:
            st.error(str(exc))
        else:
            flash("success", f"Lead {lead.id} added")
            rerun()


# ---------------------------------------------------------------------------
# Builder operations
# ---------------------------------------------------------------------------


def upload_day_image(model: DocumentModel, index: int, data: bytes, slot: str) -> DocumentModel:
    """Normalise ``data`` and attach it to one day.

    The image slot is locked for the duration so a second upload to the same
    day is refused instead of racing the first.
    """

    with OPERATION_GUARD.hold((slot, model.reference_id, index)):
        image = asyncio.run(
            normalize_image_async(
                data,
                max_width=CONFIG.image_max_width,
                quality=CONFIG.image_quality,
                timeout=CONFIG.operation_timeout_seconds,
            )
        )
        return builder.set_day_field(model, index, "image", image)


def build_layout(model: DocumentModel) -> Layout:
    model = builder.ensure_contiguous_numbering(model, strict=CONFIG.strict_invariants)
    layout = render_layout(
        model,
        CONTENT_STORE.merged(),
        SETTINGS_STORE.load(),
        enforce_ceiling=CONFIG.enforce_discount_ceiling,
    )
    return verify_page_order(layout, strict=CONFIG.strict_invariants)


def make_rasterizer() -> ReportLabRasterizer:
    return ReportLabRasterizer(
        scale=CONFIG.raster_scale,
        fetch_remote=fetch_remote_image if CONFIG.fetch_remote_images else None,
    )


def prepare_document_export(model: DocumentModel, slot: str) -> DocumentExport:
    filename = document_filename(model.kind, model.recipient_name)
    with OPERATION_GUARD.hold((slot, model.reference_id, "export")):
        return asyncio.run(
            export_as_document_async(
                build_layout(model),
                filename,
                make_rasterizer(),
                timeout=CONFIG.operation_timeout_seconds,
            )
        )


def _model(slot: str) -> Optional[DocumentModel]:
    return st.session_state.get(slot)


def _widget_key(slot: str, name: str) -> str:
    return f"{slot}_{st.session_state.get(f'{slot}_revision', 0)}_{name}"


def _store_model(slot: str, model: DocumentModel, *, reset_widgets: bool = False) -> None:
    """Replace the working model; structural edits also re-key its widgets."""

    st.session_state[slot] = model
    st.session_state.pop(f"{slot}_export", None)
    if reset_widgets:
        st.session_state[f"{slot}_revision"] = st.session_state.get(f"{slot}_revision", 0) + 1


def start_blank(kind: DocumentKind) -> DocumentModel:
    """A one-day blank document; brochure days open on the first region."""

    model = builder.append_day(builder.create_blank(kind))
    if kind is DocumentKind.BROCHURE:
        model = builder.set_region(model, 0, LOGISTICS_REGIONS[0])
    return model


def _start_panel(slot: str, kind: DocumentKind) -> None:
    priced = kind is DocumentKind.QUOTATION
    blueprints = [entry for entry in BLUEPRINTS.entries() if entry.model.has_pricing == priced]
    options = {f"{entry.title} ({entry.duration_days} days)": entry.blueprint_id for entry in blueprints}
    cols = st.columns([3, 1, 1])
    choice = cols[0].selectbox("Start from blueprint", list(options.keys()), key=_widget_key(slot, "blueprint"))
    if cols[1].button("Load", key=_widget_key(slot, "load"), use_container_width=True) and choice:
        try:
            model = builder.create_from_template(options[choice], BLUEPRINTS)
        except ProposalError as exc:
            st.error(str(exc))
        else:
            _store_model(slot, model, reset_widgets=True)
            rerun()
    blank_kind = kind
    if priced:
        formats = [DocumentKind.QUOTATION.value, DocumentKind.BROCHURE.value]
        blank_kind = DocumentKind(st.radio("Blank format", formats, horizontal=True, key=_widget_key(slot, "blank_kind")))
    if cols[2].button("Blank", key=_widget_key(slot, "blank"), use_container_width=True):
        _store_model(slot, start_blank(blank_kind), reset_widgets=True)
        rerun()


def _details_panel(model: DocumentModel, slot: str) -> DocumentModel:
    cols = st.columns(2)
    title = cols[0].text_input("Title", value=model.title, key=_widget_key(slot, "title"))
    duration = cols[1].text_input("Duration", value=model.duration_label, key=_widget_key(slot, "duration"))
    cols = st.columns(2)
    window = cols[0].text_input("Travel window", value=model.travel_window, key=_widget_key(slot, "window"))
    travelers = cols[1].text_input("Travelers", value=model.travelers, key=_widget_key(slot, "travelers"))
    changes = {
        "title": title,
        "duration_label": duration,
        "travel_window": window,
        "travelers": travelers,
    }
    if any(getattr(model, name) != value for name, value in changes.items()):
        model = builder.set_details(model, **changes)

    leads = lead_store().list()
    options = ["No lead"] + [f"{lead.id} · {lead.name}" for lead in leads]
    current = 0
    if model.recipient is not None:
        for position, lead in enumerate(leads, start=1):
            if lead.id == model.recipient.lead_id:
                current = position
    picked = st.selectbox("Prepared for", options, index=current, key=_widget_key(slot, "lead"))
    picked_lead = leads[options.index(picked) - 1] if picked != "No lead" else None
    if picked_lead is None and model.recipient is not None:
        model = builder.detach_lead(model)
    elif picked_lead is not None and (model.recipient is None or model.recipient.lead_id != picked_lead.id):
        model = builder.attach_lead(model, picked_lead)
    return model


def _day_image_controls(model: DocumentModel, index: int, slot: str) -> DocumentModel:
    day = model.days[index]
    if day.image is not None:
        st.image(day.image.data if day.image.is_inline else day.image.url, use_container_width=True)
    busy = OPERATION_GUARD.is_busy((slot, model.reference_id, index))
    uploaded = st.file_uploader(
        "Day photo",
        type=["png", "jpg", "jpeg", "webp"],
        key=_widget_key(slot, f"upload_{index}"),
        disabled=busy,
    )
    if uploaded is not None and st.button("Apply photo", key=_widget_key(slot, f"apply_{index}"), disabled=busy):
        try:
            with st.spinner("Optimizing asset"):
                model = upload_day_image(model, index, uploaded.getvalue(), slot)
        except ProposalError as exc:
            st.error(str(exc))
        else:
            flash("success", f"Photo for day {index + 1} optimised")

    destination = model.recipient_destination or ""
    suggestions = gallery_images(destination)
    if suggestions:
        cols = st.columns(len(suggestions))
        for position, url in enumerate(suggestions):
            cols[position].image(url, use_container_width=True)
            if cols[position].button("Use", key=_widget_key(slot, f"gallery_{index}_{position}")):
                model = builder.set_day_field(model, index, "image", ImageRef.from_url(url))
    if day.image is not None and st.button("Remove photo", key=_widget_key(slot, f"clear_{index}")):
        model = builder.set_day_field(model, index, "image", None)
    return model


def _day_editor(model: DocumentModel, slot: str) -> DocumentModel:
    st.subheader("Days")
    for index, day in enumerate(list(model.days)):
        with st.expander(f"Day {day.day_number}: {day.heading}", expanded=index == len(model.days) - 1):
            if model.kind is DocumentKind.BROCHURE:
                regions = list(LOGISTICS_REGIONS)
                region_index = regions.index(day.heading) if day.heading in regions else 0
                region = st.selectbox("Region", regions, index=region_index, key=_widget_key(slot, f"region_{index}"))
                if region != day.heading:
                    model = builder.set_region(model, index, region)
                for activity in activity_suggestions(region):
                    checked = st.checkbox(activity, value=activity in model.days[index].tags, key=_widget_key(slot, f"tag_{index}_{activity}"))
                    if checked != (activity in model.days[index].tags):
                        model = builder.set_day_field(model, index, "tags", activity)
                meals = st.multiselect("Meals", list(DEFAULT_MEALS) + ["Lunch"], default=day.meals, key=_widget_key(slot, f"meals_{index}"))
                if meals != day.meals:
                    model = builder.set_day_field(model, index, "meals", meals)
            else:
                heading = st.text_input("Heading", value=day.heading, key=_widget_key(slot, f"heading_{index}"))
                if heading != day.heading:
                    model = builder.set_day_field(model, index, "heading", heading)
            narrative = st.text_area("Narrative", value=day.narrative, key=_widget_key(slot, f"narrative_{index}"))
            if narrative != day.narrative:
                model = builder.set_day_field(model, index, "narrative", narrative)
            model = _day_image_controls(model, index, slot)

            cols = st.columns(4)
            if cols[0].button("Move up", key=_widget_key(slot, f"up_{index}"), disabled=index == 0):
                _store_model(slot, builder.move_day(model, index, -1), reset_widgets=True)
                rerun()
            if cols[1].button("Move down", key=_widget_key(slot, f"down_{index}"), disabled=index == len(model.days) - 1):
                _store_model(slot, builder.move_day(model, index, 1), reset_widgets=True)
                rerun()
            if cols[2].button("Duplicate", key=_widget_key(slot, f"dup_{index}"), disabled=len(model.days) >= builder.MAX_DAYS):
                _store_model(slot, builder.duplicate_day(model, index), reset_widgets=True)
                rerun()
            if cols[3].button("Remove", key=_widget_key(slot, f"remove_{index}")):
                _store_model(slot, builder.remove_day(model, index), reset_widgets=True)
                rerun()

    if st.button("Add day", key=_widget_key(slot, "add_day"), disabled=len(model.days) >= builder.MAX_DAYS):
        _store_model(slot, builder.append_day(model), reset_widgets=True)
        rerun()
    return model


def _list_editor(model: DocumentModel, slot: str) -> DocumentModel:
    cols = st.columns(2)
    inclusions = cols[0].text_area("Inclusions (one per line)", value="\n".join(model.inclusions), key=_widget_key(slot, "inclusions"))
    exclusions = cols[1].text_area("Exclusions (one per line)", value="\n".join(model.exclusions), key=_widget_key(slot, "exclusions"))
    if inclusions.splitlines() != model.inclusions:
        model = builder.set_list(model, "inclusions", inclusions.splitlines())
    if exclusions.splitlines() != model.exclusions:
        model = builder.set_list(model, "exclusions", exclusions.splitlines())
    return model


def _pricing_sidebar(model: DocumentModel, slot: str) -> DocumentModel:
    settings = SETTINGS_STORE.load()
    terms = model.pricing_terms or PricingTerms()
    st.sidebar.subheader("Pricing")
    hotel = terms.hotels[0] if terms.hotels else HotelOption(name="")
    hotel_name = st.sidebar.text_input("Hotel", value=hotel.name, key=_widget_key(slot, "hotel"))
    hotel_rate = st.sidebar.number_input("Hotel rate per night", min_value=0.0, value=float(hotel.price_per_night), step=500.0, key=_widget_key(slot, "hotel_rate"))
    vehicle_type = st.sidebar.selectbox(
        "Vehicle",
        VEHICLE_TYPES,
        index=VEHICLE_TYPES.index(terms.vehicle.type) if terms.vehicle.type in VEHICLE_TYPES else 0,
        key=_widget_key(slot, "vehicle"),
    )
    vehicle_rate = st.sidebar.number_input("Vehicle rate per day", min_value=0.0, value=float(terms.vehicle.rate), step=500.0, key=_widget_key(slot, "vehicle_rate"))
    package_cost = st.sidebar.number_input("Package cost", min_value=0.0, value=float(terms.package_cost), step=1000.0, key=_widget_key(slot, "package"))
    discount = st.sidebar.number_input(
        "Discount %",
        min_value=0.0,
        max_value=100.0,
        value=float(terms.discount_percent),
        step=1.0,
        key=_widget_key(slot, "discount"),
        help=f"Agency ceiling is {settings.max_discount_percent:g}%",
    )
    updated = PricingTerms(
        hotels=[HotelOption(name=hotel_name, location=hotel.location, category=hotel.category, star_rating=hotel.star_rating, price_per_night=hotel_rate, image=hotel.image)] if hotel_name else [],
        vehicle=VehicleOption(type=vehicle_type, rate=vehicle_rate, info=terms.vehicle.info),
        package_cost=package_cost,
        discount_percent=discount,
    )
    if updated != terms:
        model = builder.set_pricing_terms(model, updated)

    summary = pricing_summary(model, settings, enforce_ceiling=CONFIG.enforce_discount_ceiling)
    if summary is not None:
        symbol = label("currency_symbol")
        frame = pd.DataFrame(
            [(row_label, format_currency(amount, symbol)) for row_label, amount in summary.rows()],
            columns=["Item", "Amount"],
        )
        st.sidebar.dataframe(frame, hide_index=True, use_container_width=True)
        if summary.discount_clamped:
            st.sidebar.warning(
                f"Discount capped at {summary.discount_percent.normalize():f}% by agency policy."
            )
    return model


def _export_panel(model: DocumentModel, slot: str, user: User) -> None:
    if not can(user, Capability.EXPORT_DOCUMENTS):
        return
    st.subheader("Share")
    busy = OPERATION_GUARD.is_busy((slot, model.reference_id, "export"))
    cols = st.columns(2)
    if cols[0].button("Prepare PDF", key=_widget_key(slot, "pdf"), disabled=busy, use_container_width=True):
        try:
            with st.spinner("Rendering document"):
                st.session_state[f"{slot}_export"] = prepare_document_export(model, slot)
        except OperationInProgressError as exc:
            st.warning(str(exc))
        except ProposalError as exc:
            st.error(str(exc))

    export = st.session_state.get(f"{slot}_export")
    if export is not None:
        if export.is_pdf:
            cols[0].download_button(
                "Download PDF",
                data=export.data,
                file_name=export.filename,
                mime=export.mime_type,
                key=_widget_key(slot, "download"),
                use_container_width=True,
            )
        else:
            st.warning("PDF engine unavailable; opening the print dialog instead.")
            st_components_html(export.html + "<script>window.print()</script>", height=0)

    if cols[1].button("Share on WhatsApp", key=_widget_key(slot, "whatsapp"), use_container_width=True):
        try:
            message = export_as_message(model, user.name, CONTENT_STORE.merged())
        except ProposalError as exc:
            st.error(str(exc))
        else:
            cols[1].link_button("Open WhatsApp", message.link, use_container_width=True)
            with st.expander("Message text"):
                st.code(message.text, language=None)


def render_builder(user: User, kind: DocumentKind, slot: str) -> None:
    capability = Capability.BUILD_QUOTATION if kind is DocumentKind.QUOTATION else Capability.BUILD_ITINERARY
    require(user, capability)
    st.header(label("menu_quotation" if kind is DocumentKind.QUOTATION else "menu_itinerary"))
    _start_panel(slot, kind)

    model = _model(slot)
    if model is None:
        st.image(COVER_BANNER_URL, use_container_width=True)
        st.info("Load a blueprint or start blank to begin.")
        return

    original = model
    editor_col, preview_col = st.columns([1, 1], gap="large")
    with editor_col:
        model = _details_panel(model, slot)
        model = _day_editor(model, slot)
        model = _list_editor(model, slot)
    if model.has_pricing:
        model = _pricing_sidebar(model, slot)
    if model is not original:
        _store_model(slot, model)

    with preview_col:
        st.subheader("Preview")
        try:
            layout = build_layout(model)
        except ProposalError as exc:
            st.error(str(exc))
        else:
            st_components_html(render_html(layout), height=900, scrolling=True)
        _export_panel(model, slot, user)


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


def render_admin(user: User) -> None:
    require(user, Capability.MANAGE_SETTINGS)
    st.header(label("menu_admin"))
    settings_tab, blueprint_tab, content_tab, users_tab = st.tabs(["Agency settings", "Blueprints", "Content", "Users"])

    with settings_tab:
        settings = SETTINGS_STORE.load()
        with st.form("agency_settings_form"):
            markup = st.number_input("Markup %", min_value=0.0, value=float(settings.markup_percent), step=1.0)
            ceiling = st.number_input("Maximum discount %", min_value=0.0, max_value=100.0, value=float(settings.max_discount_percent), step=1.0)
            submitted = st.form_submit_button("Save settings")
        if submitted:
            try:
                SETTINGS_STORE.save(AgencySettings(markup_percent=markup, max_discount_percent=ceiling))
            except ValueError as exc:
                st.error(str(exc))
            else:
                st.success("Settings updated")

    with blueprint_tab:
        st.dataframe(BLUEPRINTS.to_frame(), use_container_width=True, hide_index=True)
        draft = _model(ITINERARY_SLOT) or _model(QUOTATION_SLOT)
        if draft is None:
            st.caption("Open a document in a builder to save it as a blueprint.")
        else:
            with st.form("save_blueprint_form"):
                blueprint_id = st.text_input("Blueprint id")
                title = st.text_input("Title", value=draft.title)
                destination = st.text_input("Destination", value=draft.recipient_destination or "")
                description = st.text_area("Description")
                submitted = st.form_submit_button("Save current document as blueprint")
            if submitted:
                try:
                    BLUEPRINTS.save(draft, blueprint_id, title, destination, description)
                except ValueError as exc:
                    st.error(str(exc))
                else:
                    flash("success", f"Blueprint {blueprint_id} saved")
                    rerun()

    with content_tab:
        require(user, Capability.EDIT_CONTENT)
        overrides = CONTENT_STORE.snapshot()
        with st.form("content_form"):
            values = {key: st.text_input(key, value=CONTENT_STORE.get(key)) for key in DEFAULT_CONTENT}
            submitted = st.form_submit_button("Save content")
        if submitted:
            for key, value in values.items():
                save_content(key, value)
            flash("success", "Content updated")
            rerun()
        if overrides:
            reset_key = st.selectbox("Reset slot to default", sorted(overrides))
            if st.button("Reset slot"):
                CONTENT_STORE.reset(reset_key)
                rerun()

    with users_tab:
        users = ACCOUNTS.users()
        st.dataframe(
            pd.DataFrame(
                [(item.id, item.name, item.role.value, item.email) for item in users],
                columns=["Username", "Name", "Role", "Email"],
            ),
            use_container_width=True,
            hide_index=True,
        )
        with st.form("add_user_form", clear_on_submit=True):
            cols = st.columns(2)
            username = cols[0].text_input("Username")
            password = cols[1].text_input("Password", type="password")
            cols = st.columns(3)
            name = cols[0].text_input("Name")
            role = cols[1].selectbox("Role", [item.value for item in UserRole])
            email = cols[2].text_input("Email")
            submitted = st.form_submit_button("Create user")
        if submitted:
            try:
                ACCOUNTS.add(username, password, name=name, role=UserRole(role), email=email)
            except ValueError as exc:
                st.error(str(exc))
            else:
                flash("success", f"User {username} created")
                rerun()


# ---------------------------------------------------------------------------
# Application entry point
# ---------------------------------------------------------------------------


PAGE_RENDERERS = {
    "overview": render_overview,
    "leads": render_leads,
    "itinerary": lambda user: render_builder(user, DocumentKind.ITINERARY, ITINERARY_SLOT),
    "quotation": lambda user: render_builder(user, DocumentKind.QUOTATION, QUOTATION_SLOT),
    "admin": render_admin,
}


def main() -> None:
    st.set_page_config(page_title=label("agency_name"), page_icon="🏔️", layout="wide")
    user = current_user()
    if user is None:
        show_flash_messages()
        login_screen()
        return

    pages = _navigation_pages(user)
    if not pages:
        st.error("Your role has no pages assigned. Contact an administrator.")
        return
    sidebar(user, pages)
    if st.session_state.get("edit_mode"):
        _edit_mode_panel()
    show_flash_messages()

    page = st.session_state.get("active_page", next(iter(pages)))
    try:
        PAGE_RENDERERS[page](user)
    except ProposalError as exc:
        st.error(str(exc))


def _streamlit_runtime_active() -> bool:
    """Return True when running inside a Streamlit runtime."""

    try:
        from streamlit.runtime.scriptrunner import get_script_run_ctx
    except ImportError:
        return False
    return get_script_run_ctx() is not None


def _streamlit_flag_options_from_env() -> dict[str, object]:
    """Derive Streamlit bootstrap flag options from environment variables."""

    flag_options: dict[str, object] = {}
    port_env = os.getenv("PORT")
    if port_env and port_env.isdigit():
        flag_options["server.port"] = int(port_env)
    flag_options["server.address"] = os.getenv("HOST") or "0.0.0.0"
    headless_env = os.getenv("STREAMLIT_SERVER_HEADLESS")
    flag_options["server.headless"] = (
        True if headless_env is None else headless_env.strip().lower() in ("1", "true", "yes", "on")
    )
    return flag_options


def _bootstrap_streamlit_app() -> None:
    """Launch the Streamlit app when executed via ``python proposal_app.py``."""

    from streamlit.web import bootstrap

    bootstrap.run(os.path.abspath(__file__), False, [], _streamlit_flag_options_from_env())


if __name__ == "__main__":
    if _streamlit_runtime_active():
        main()
    else:
        _bootstrap_streamlit_app()
