"""
HTTP contract tests for the advisor endpoints.

Uses the Flask test client against the catalog shipped in data/, so the
whole request → reconcile → rank → bundle → response path is exercised.
"""

import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "backend"))

import server


@pytest.fixture(scope="module")
def client():
    server.app.config["TESTING"] = True
    with server.app.test_client() as c:
        yield c


def post_json(client, path, payload):
    resp = client.post(path, data=json.dumps(payload), content_type="application/json")
    return resp.status_code, resp.get_json()


def _codes(entries):
    return [e["course"]["code"] for e in entries]


# ── Health / security ───────────────────────────────────────────────────────

class TestHealthAndHeaders:
    @pytest.mark.parametrize("path", ["/health", "/api/health"])
    def test_health(self, client, path):
        resp = client.get(path)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "ok"
        assert data["catalog_courses"] == 14

    def test_security_headers(self, client):
        resp = client.get("/api/catalog")
        assert resp.headers.get("X-Frame-Options") == "DENY"
        assert resp.headers.get("X-Content-Type-Options") == "nosniff"
        assert resp.headers.get("Referrer-Policy") == "same-origin"

    def test_unknown_api_route(self, client):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert "not found" in resp.get_json()["error"]

    def test_wrong_method_is_not_a_server_error(self, client):
        assert client.get("/api/advise").status_code == 405


# ── Catalog ─────────────────────────────────────────────────────────────────

class TestCatalogEndpoint:
    def test_lists_courses(self, client):
        data = client.get("/api/catalog").get_json()
        assert len(data["courses"]) == 14
        assert data["total_credits"] == 40
        assert data["equivalency_rules"] == 11
        edi204 = next(c for c in data["courses"] if c["code"] == "EDI204")
        assert edi204["prerequisites"] == ["EDI101", "EDI102"]
        assert edi204["unlock_count"] == 2


# ── Advise ──────────────────────────────────────────────────────────────────

class TestAdvise:
    def test_fresh_student(self, client):
        status, data = post_json(client, "/api/advise", {"student_name": "Ana", "courses": []})
        assert status == 200
        assert data["mode"] == "advise"
        assert _codes(data["suggestions"]) == ["EDI101", "EDI102", "EDI103", "EDI104"]
        assert data["bundle_credits"] == 9
        assert data["progress"]["student_name"] == "Ana"

    def test_small_ceiling(self, client):
        status, data = post_json(client, "/api/advise", {
            "courses": ["PIN110", "PIN120", "PIN130"],
            "credit_ceiling": 5,
        })
        assert status == 200
        assert _codes(data["bundle"]) == ["EDI204", "EDI104"]
        assert len(data["suggestions"]) == 5
        assert data["credit_ceiling"] == 5

    def test_courses_as_string(self, client):
        status, data = post_json(client, "/api/advise", {"courses": "PIN110, pin-120; PIN130"})
        assert status == 200
        assert data["progress"]["satisfied_courses"] == ["EDI101", "EDI102", "EDI103"]

    def test_record_objects_and_camel_case(self, client):
        status, data = post_json(client, "/api/advise", {
            "studentName": "Luis",
            "studentId": "2002",
            "completed_courses": [
                {"codigo": "PIN110", "nombre": "Introducción a la pedagogía infantil"},
                {"nombre": "Cátedra Unadista"},
                {"code": "MAT999", "name": "Cálculo"},
            ],
        })
        assert status == 200
        assert data["progress"]["student_id"] == "2002"
        assert data["progress"]["satisfied_courses"] == ["EDI101", "EDI104"]
        assert data["progress"]["unmatched_count"] == 1

    def test_default_ceiling(self, client):
        _, data = post_json(client, "/api/advise", {"courses": []})
        assert data["credit_ceiling"] == 14

    @pytest.mark.parametrize("ceiling", [-1, "abc", 2.5, True])
    def test_bad_ceiling(self, client, ceiling):
        status, data = post_json(client, "/api/advise", {"courses": [], "credit_ceiling": ceiling})
        assert status == 400
        assert data["error"]["error_code"] == "INVALID_INPUT"

    def test_bad_courses(self, client):
        status, data = post_json(client, "/api/advise", {"courses": 42})
        assert status == 400
        assert data["mode"] == "error"

    def test_non_json_body(self, client):
        resp = client.post("/api/advise", data="not json", content_type="text/plain")
        assert resp.status_code == 400

    def test_unexpected_error_returns_json_500(self, client, monkeypatch):
        def boom(*_args, **_kwargs):
            raise RuntimeError("kaboom")

        monkeypatch.setattr(server, "run_advisor", boom)
        status, data = post_json(client, "/api/advise", {"courses": []})
        assert status == 500
        assert data["error"]["error_code"] == "SERVER_ERROR"


# ── Batch ───────────────────────────────────────────────────────────────────

class TestAdviseBatch:
    def test_mixed_batch(self, client):
        status, data = post_json(client, "/api/advise/batch", {
            "transcripts": [
                {"student_name": "Ana", "courses": ["PIN110"]},
                {"student_name": "Bad", "courses": "PIN110"},
            ],
        })
        assert status == 200
        assert data["mode"] == "batch"
        assert data["succeeded"] == 1
        assert data["failed"] == 1
        assert [r["slot"] for r in data["results"]] == [0, 1]
        assert data["results"][0]["data"]["progress"]["satisfied_courses"] == ["EDI101"]
        assert data["results"][1]["data"] is None
        assert data["results"][1]["error"]

    def test_empty_batch_rejected(self, client):
        status, _ = post_json(client, "/api/advise/batch", {"transcripts": []})
        assert status == 400

    def test_oversized_batch_rejected(self, client):
        transcripts = [{"courses": []}] * (server.MAX_BATCH_SIZE + 1)
        status, _ = post_json(client, "/api/advise/batch", {"transcripts": transcripts})
        assert status == 400

    def test_batch_ceiling_applies_to_every_slot(self, client):
        _, data = post_json(client, "/api/advise/batch", {
            "transcripts": [{"courses": []}, {"courses": ["PIN110", "PIN120", "PIN130"]}],
            "credit_ceiling": 5,
        })
        assert all(r["data"]["credit_ceiling"] == 5 for r in data["results"])
        assert _codes(data["results"][1]["data"]["bundle"]) == ["EDI204", "EDI104"]


# ── Can-take ────────────────────────────────────────────────────────────────

class TestCanTake:
    def test_can_take(self, client):
        status, data = post_json(client, "/api/can-take", {
            "requested_course": "edi 201",
            "courses": ["PIN110"],
        })
        assert status == 200
        assert data["mode"] == "can_take"
        assert data["requested_course"] == "EDI201"
        assert data["can_take"] is True

    def test_missing_prereqs(self, client):
        _, data = post_json(client, "/api/can-take", {
            "requested_course": "EDI301",
            "courses": "PIN110",
        })
        assert data["can_take"] is False
        assert data["missing_prereqs"] == ["EDI201", "EDI204"]

    def test_unknown_course(self, client):
        _, data = post_json(client, "/api/can-take", {"requested_course": "ZZZ999"})
        assert data["can_take"] is False

    def test_requested_course_required(self, client):
        status, data = post_json(client, "/api/can-take", {"courses": []})
        assert status == 400
        assert data["mode"] == "can_take"
