import importlib.util
import io
from datetime import date
from pathlib import Path

import pytest
from PIL import Image

from lmt_proposals import builder
from lmt_proposals.config import AgencySettings, AppConfig
from lmt_proposals.leads import Lead
from lmt_proposals.models import DocumentKind


@pytest.fixture(scope="session")
def app_module(tmp_path_factory):
    patcher = pytest.MonkeyPatch()
    patcher.setenv("LMT_DATA_DIR", str(tmp_path_factory.mktemp("app-data")))
    patcher.setenv("LMT_ADMIN_USER", "test_admin")
    patcher.setenv("LMT_ADMIN_PASS", "secret123")
    patcher.setenv("LMT_FETCH_REMOTE_IMAGES", "false")
    patcher.delenv("LMT_ACCOUNTS_FILE", raising=False)

    repo_root = Path(__file__).resolve().parents[1]
    app_path = repo_root / "proposal_app.py"
    spec = importlib.util.spec_from_file_location("proposal_app_for_tests", app_path)
    module = importlib.util.module_from_spec(spec)
    loader = spec.loader
    if loader is None:
        raise RuntimeError("Unable to load app module for tests")
    loader.exec_module(module)
    try:
        yield module
    finally:
        patcher.undo()


@pytest.fixture()
def app_config(tmp_path):
    return AppConfig(data_dir=tmp_path, agency=AgencySettings())


@pytest.fixture()
def sample_lead():
    return Lead(
        id="L900",
        name="Asha",
        phone="+91 98300-12345",
        destination="Darjeeling",
    )


@pytest.fixture()
def sample_model(sample_lead):
    model = builder.create_blank(
        DocumentKind.ITINERARY,
        "Test Trip",
        reference_id="LMT-ITN-1000",
        issued_date=date(2026, 1, 5),
    )
    model = builder.append_day(model, heading="Arrival", narrative="Transfer to hotel")
    return builder.attach_lead(model, sample_lead)


@pytest.fixture()
def make_image():
    def _make(width, height, mode="RGB", color=(200, 30, 30), fmt="PNG"):
        image = Image.new(mode, (width, height), color)
        buffer = io.BytesIO()
        image.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make
