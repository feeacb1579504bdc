"""
HTTP API tests using FastAPI's TestClient with an isolated services container.
"""
import pytest
from fastapi.testclient import TestClient

from travel_pricing.api import slabs_api
from travel_pricing.api.main import app
from travel_pricing.api.state import build_services, get_services
from travel_pricing.sync.storage import MemoryStorage


@pytest.fixture
def services(settings):
    return build_services(settings, storage=MemoryStorage())


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


PAYLOAD = {
    "pax": {"adults": 2, "children": 1},
    "destination_country": "SG",
    "base_cost_override": 1000,
    "markup": {"type": "percentage", "value": 15},
    "discount": {"enabled": True, "type": "percentage", "value": 10},
    "tax": {"enabled": True},
}


def test_root(client):
    assert client.get("/").json()["status"] == "online"


def test_system_status(client):
    data = client.get("/system/status").json()
    assert data["engine_active"] is True
    assert "SG" in data["tax_countries"]
    assert data["slabs"]["total"] == 3


def test_calculate_preview_is_not_persisted(client):
    response = client.post("/calculate", json={**PAYLOAD, "enquiry_id": "ENQ-1"})
    assert response.status_code == 200
    assert response.json()["final_price"] == pytest.approx(1128.15)
    assert response.json()["currency"]["code"] == "SGD"

    assert client.get("/enquiries/ENQ-1/pricing").status_code == 404


def test_recalculate_and_load(client):
    response = client.post("/enquiries/ENQ-1/pricing", json=PAYLOAD)
    assert response.status_code == 200
    assert response.json()["version"] == 1

    loaded = client.get("/enquiries/ENQ-1/pricing").json()
    assert loaded["snapshot"]["final_price"] == pytest.approx(1128.15)
    assert loaded["pending"] is False


def test_recalculate_with_stale_version_conflicts(client):
    client.post("/enquiries/ENQ-1/pricing", json=PAYLOAD)
    client.post("/enquiries/ENQ-1/pricing", json={**PAYLOAD, "expected_version": 1})

    response = client.post("/enquiries/ENQ-1/pricing", json={**PAYLOAD, "expected_version": 1})
    assert response.status_code == 409
    assert response.json()["detail"]["current_version"] == 2


def test_pricing_settings_round_trip(client):
    settings = client.get("/settings/pricing").json()
    settings["default_markup_percentage"] = 20

    assert client.put("/settings/pricing", json=settings).json()["default_markup_percentage"] == 20

    payload = {"pax": {"adults": 1}, "base_cost_override": 100, "markup": {"type": "percentage"}}
    assert client.post("/calculate", json=payload).json()["markup"]["amount"] == pytest.approx(20)


def test_proposal_flow(client):
    client.post("/enquiries/ENQ-1/pricing", json=PAYLOAD)

    draft = client.get("/enquiries/ENQ-1/proposal").json()
    assert draft["pricing"]["final_price"] == pytest.approx(1128.15)
    assert draft["status"] == "draft"

    draft = client.put("/enquiries/ENQ-1/proposal", json={
        "accommodations": [{"hotel": "Marina Bay", "nights": 3}],
        "apply_default_terms": True,
        "country": "SG",
    }).json()
    assert draft["status"] == "ready"
    assert draft["accommodations"][0]["hotel"] == "Marina Bay"

    response = client.post("/enquiries/ENQ-1/proposal/send", json={
        "method": "email",
        "contact": {"name": "Wei", "email": "wei@example.com"},
    })
    assert response.status_code == 200
    assert response.json()["record"]["sent_to"] == "wei@example.com"

    history = client.get("/enquiries/ENQ-1/proposal/history").json()
    assert len(history) == 1
    assert client.get("/enquiries/ENQ-1/proposal").json()["status"] == "sent"

    summary = client.get("/enquiries/ENQ-1/proposal/summary")
    assert "TOTAL COST: SGD 1,128.15" in summary.text


def test_send_validation_failure(client):
    response = client.post("/enquiries/ENQ-2/proposal/send", json={"method": "whatsapp", "contact": {}})
    assert response.status_code == 400
    assert "Pricing not configured" in response.json()["detail"]["errors"]

    notices = client.get("/notifications", params={"level": "error"}).json()
    assert len(notices) == 1


def test_update_terms(client):
    response = client.put("/enquiries/ENQ-3/proposal/terms", json={"payment_terms": "Full prepayment"})
    assert response.json()["terms"]["payment_terms"] == "Full prepayment"


def test_slab_crud(client):
    slab = {"name": "Ultra", "min_amount": 50000, "markup_type": "percentage", "markup_value": 5}
    created = client.post("/api/slabs", json=slab).json()
    assert created["id"] == "ULTRA"
    assert created["max_amount"] is None

    assert client.get("/api/slabs/ULTRA").json()["markup_value"] == 5
    assert client.put("/api/slabs/ULTRA", json={"markup_value": 6}).json()["markup_value"] == 6
    assert client.delete("/api/slabs/ULTRA").json()["success"] is True
    assert client.get("/api/slabs/ULTRA").status_code == 404


def test_slab_validation(client):
    bad = {"name": "Broken", "min_amount": 100, "max_amount": 50}
    assert client.post("/api/slabs", json=bad).status_code == 400

    result = client.post("/api/slabs/validate", json={"name": "Overlap", "min_amount": 4000, "max_amount": 6000}).json()
    assert result["valid"] is True
    assert len(result["warnings"]) == 2

    assert client.put("/api/slabs/SLAB-1", json={"max_amount": -1}).status_code == 400
    assert client.put("/api/slabs/NOPE", json={"markup_value": 1}).status_code == 404


def test_slab_pricing_uses_edited_slabs(client):
    client.put("/api/slabs/SLAB-1", json={"markup_value": 20})
    payload = {"pax": {"adults": 1}, "base_cost_override": 1000, "markup": {"type": "slab"}}
    assert client.post("/calculate", json=payload).json()["markup"]["amount"] == pytest.approx(200)


def test_slab_export(client):
    response = client.get("/api/slabs/export", params={"format": "csv"})
    assert response.status_code == 200
    assert response.text.splitlines()[0].startswith("id,name,min_amount")

    assert client.get("/api/slabs/export", params={"format": "pdf"}).status_code == 400


def test_terms_templates_api(client):
    created = client.post("/api/terms-templates", json={
        "name": "Singapore",
        "country": "SG",
        "data": {"payment_terms": "Pay on arrival"},
    }).json()

    assert client.get("/api/terms-templates/default", params={"country": "SG"}).json()["payment_terms"] == "Pay on arrival"
    assert len(client.get("/api/terms-templates", params={"country": "sg"}).json()) == 1

    assert client.delete(f"/api/terms-templates/{created['id']}").status_code == 200
    assert client.delete(f"/api/terms-templates/{created['id']}").status_code == 404


def test_slab_update_rejects_null_amounts(client):
    response = client.put("/api/slabs/SLAB-1", json={"min_amount": None, "markup_value": None})
    assert response.status_code == 400
    assert len(response.json()["detail"]["errors"]) == 2

    cleared = client.put("/api/slabs/SLAB-2", json={"max_amount": None})
    assert cleared.status_code == 200
    assert cleared.json()["max_amount"] is None


def test_slab_export_removes_temp_dir(client, tmp_path, monkeypatch):
    export_dir = tmp_path / "export"
    export_dir.mkdir()
    monkeypatch.setattr(slabs_api.tempfile, "mkdtemp", lambda: str(export_dir))

    response = client.get("/api/slabs/export", params={"format": "csv"})
    assert response.status_code == 200
    assert response.text.startswith("id,name")
    assert not export_dir.exists()
