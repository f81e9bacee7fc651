import pytest
from fastapi.testclient import TestClient

import api


@pytest.fixture()
def client():
	return TestClient(api.app)


def test_health(client):
	r = client.get("/health")
	assert r.status_code == 200
	assert r.json()["status"] == "ok"


def test_rules_lists_builtins(client):
	names = [r["name"] for r in client.get("/rules").json()]
	assert "with_view_store" in names
	assert "bindable" in names


def test_validate(client, write_swift, tmp_path):
	write_swift("Sources/View.swift", "WithViewStore(store) { _ in }\n")
	r = client.post("/validate", json={"root_path": str(tmp_path)})
	assert r.status_code == 200
	body = r.json()
	assert body["total_errors"] == 2
	assert body["files"][0]["rel_path"] == "Sources/View.swift"


def test_validate_bad_path(client, tmp_path):
	r = client.post("/validate", json={"root_path": str(tmp_path / "missing")})
	assert r.status_code == 400
	assert "does not exist" in r.json()["detail"]


def test_compliance_score(client, write_swift, tmp_path):
	write_swift("Sources/Settings.swift", "static let shared = Settings()\n")
	r = client.post("/compliance/score", json={"root_path": str(tmp_path)})
	assert r.status_code == 200
	body = r.json()
	assert body["score"]["score"] == 98
	assert body["score"]["grade"] == "A+"
	assert body["result"]["summary"]["warnings"] == 1
	assert body["headline"].startswith("Excellent")


def test_route(client):
	r = client.post("/route", json={"task": "write a test with TestClock"})
	assert r.json()["classification"]["route"]["category"] == "testing"

	r = client.post("/route", json={"task": "  "})
	assert r.status_code == 400


def test_spm_endpoints(client, tmp_path):
	manifest = (
		'let package = Package(name: "Pkg", targets: [\n'
		'\t.target(name: "App", dependencies: [.product(name: "Lottie", package: "lottie", condition: .when(platforms: [.iOS]))]),\n'
		"])\n"
	)
	(tmp_path / "Package.swift").write_text(manifest)

	r = client.post("/spm", json={"root_path": str(tmp_path)})
	assert r.status_code == 200
	assert r.json()["result"] == "PASS"

	r = client.post("/spm/platforms", json={"root_path": str(tmp_path), "platform": "visionOS"})
	body = r.json()
	assert body["ok"] is False
	assert body["gaps"][0]["product"] == "Lottie"

	r = client.post("/spm", json={"root_path": str(tmp_path / "nope")})
	assert r.status_code == 400
