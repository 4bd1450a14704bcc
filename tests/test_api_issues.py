"""
Issue API tests — request/response contract and error mapping.

Uses shared fixtures from conftest.py: client, session (autouse), auth_headers,
make_profile, make_issue, technician_id.
"""

import pytest


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════


ISSUE_PAYLOAD = {
    "title": "Overflowing bin",
    "description": "Not collected since Monday",
    "category": "Waste",
    "photo": "",
    "latitude": 19.076,
    "longitude": 72.8777,
}


@pytest.fixture()
def roles(make_profile, technician_id):
    make_profile("c1", "Citizen")
    make_profile("c2", "Citizen")
    make_profile("a1", "Admin", approved=True)
    make_profile("t1", "Technician")
    make_profile("t2", "Technician")
    return {"t1": technician_id("t1"), "t2": technician_id("t2")}


def _create(client, headers, **overrides):
    return client.post("/api/v1/issues", json={**ISSUE_PAYLOAD, **overrides}, headers=headers)


# ═══════════════════════════════════════════════════════════════════════════
# Submission
# ═══════════════════════════════════════════════════════════════════════════


class TestCreateIssue:

    def test_create_returns_id_and_priority(self, client, roles, auth_headers):
        res = _create(client, auth_headers("c1"))
        assert res.status_code == 201
        body = res.get_json()
        assert body["success"] is True
        assert body["priority"] == "Medium"
        assert body["issue_id"]

    def test_duplicate_location_flagged_high(self, client, roles, auth_headers):
        _create(client, auth_headers("c1"))
        res = _create(client, auth_headers("c2"), latitude=19.0765)
        assert res.get_json()["priority"] == "High"

    def test_anonymous_is_401(self, client):
        res = _create(client, {})
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHENTICATED"

    def test_invalid_token_is_anonymous(self, client):
        res = _create(client, {"Authorization": "Bearer not-a-token"})
        assert res.status_code == 401

    def test_bad_category_is_400(self, client, roles, auth_headers):
        res = _create(client, auth_headers("c1"), category="Graffiti")
        assert res.status_code == 400
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_INVALID"
        assert body["details"] == {"category": "invalid"}

    @pytest.mark.parametrize("field", ["latitude", "longitude"])
    def test_coordinate_too_large_for_float_is_400(self, client, roles, auth_headers, field):
        res = _create(client, auth_headers("c1"), **{field: 10**400})
        assert res.status_code == 400
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_INVALID"
        assert body["details"] == {field: "out_of_range"}

    def test_overlong_title_is_400(self, client, roles, auth_headers):
        res = _create(client, auth_headers("c1"), title="T" * 301)
        assert res.status_code == 400
        assert res.get_json()["details"] == {"title": "too_long"}

    def test_non_object_body_is_400(self, client, roles, auth_headers):
        res = client.post("/api/v1/issues", json=["nope"], headers=auth_headers("c1"))
        assert res.status_code == 400

    def test_oversized_body_is_413(self, client, roles, auth_headers):
        res = _create(client, auth_headers("c1"), photo="A" * (2 * 1024 * 1024 + 10))
        assert res.status_code == 413


# ═══════════════════════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════════════════════


class TestReads:

    def test_mine_is_scoped(self, client, roles, auth_headers):
        _create(client, auth_headers("c1"))
        assert len(client.get("/api/v1/issues/mine", headers=auth_headers("c1")).get_json()) == 1
        assert client.get("/api/v1/issues/mine", headers=auth_headers("c2")).get_json() == []

    def test_all_issues_forbidden_for_citizen(self, client, roles, auth_headers):
        res = client.get("/api/v1/issues", headers=auth_headers("c1"))
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"

    def test_all_issues_filter_query(self, client, roles, auth_headers):
        _create(client, auth_headers("c1"))
        h = auth_headers("a1")
        assert len(client.get("/api/v1/issues?category=Waste", headers=h).get_json()) == 1
        assert client.get("/api/v1/issues?category=Road", headers=h).get_json() == []
        assert client.get("/api/v1/issues?status=Closed", headers=h).status_code == 400

    def test_detail_and_missing(self, client, roles, auth_headers):
        iid = _create(client, auth_headers("c1")).get_json()["issue_id"]
        res = client.get(f"/api/v1/issues/{iid}", headers=auth_headers("c2"))
        assert res.status_code == 200
        assert res.get_json()["reporter_name"] == "User c1"
        missing = client.get("/api/v1/issues/does-not-exist", headers=auth_headers("c2"))
        assert missing.status_code == 404
        assert missing.get_json()["error"] == "Issue not found"

    def test_map_requires_identity(self, client):
        assert client.get("/api/v1/issues/map").status_code == 401

    def test_public_stats_anonymous(self, client, roles, auth_headers):
        _create(client, auth_headers("c1"))
        res = client.get("/api/v1/public/stats")
        assert res.status_code == 200
        body = res.get_json()
        assert body["total"] == 1
        assert "reported_by" not in body["recent_issues"][0]
        assert "latitude" not in body["recent_issues"][0]

    def test_technicians_listing(self, client, roles, auth_headers):
        res = client.get("/api/v1/technicians", headers=auth_headers("a1"))
        assert res.status_code == 200
        assert len(res.get_json()) == 2
        assert client.get("/api/v1/technicians", headers=auth_headers("c1")).status_code == 403

    def test_dashboard_stats(self, client, roles, auth_headers):
        res = client.get("/api/v1/dashboard/stats", headers=auth_headers("a1"))
        assert res.status_code == 200
        assert res.get_json()["high_priority"] == 0


# ═══════════════════════════════════════════════════════════════════════════
# Lifecycle
# ═══════════════════════════════════════════════════════════════════════════


class TestLifecycleEndpoints:

    def test_full_walk(self, client, roles, auth_headers):
        iid = _create(client, auth_headers("c1")).get_json()["issue_id"]

        res = client.post(f"/api/v1/issues/{iid}/comments",
                          json={"message": "Smells bad"}, headers=auth_headers("c2"))
        assert res.status_code == 201

        res = client.post(f"/api/v1/issues/{iid}/assign",
                          json={"technician_id": roles["t1"]}, headers=auth_headers("a1"))
        assert res.status_code == 200
        assert res.get_json()["status"] == "Assigned"

        queue = client.get("/api/v1/issues/assigned", headers=auth_headers("t1")).get_json()
        assert [i["id"] for i in queue] == [iid]

        res = client.post(f"/api/v1/issues/{iid}/fix",
                          json={"proof_photo": "proof.png"}, headers=auth_headers("t2"))
        assert res.status_code == 403
        assert res.get_json()["error"] == "You are not assigned to this issue"

        res = client.post(f"/api/v1/issues/{iid}/fix",
                          json={"proof_photo": "proof.png"}, headers=auth_headers("t1"))
        assert res.status_code == 200

        detail = client.get(f"/api/v1/issues/{iid}", headers=auth_headers("c1")).get_json()
        assert detail["status"] == "Fixed"
        assert detail["proof_photo"] == "proof.png"
        assert [c["message"] for c in detail["comments"]] == [
            "Smells bad", "Issue marked as fixed. Proof photo attached.",
        ]

    def test_illegal_transition_is_409(self, client, roles, auth_headers):
        iid = _create(client, auth_headers("c1")).get_json()["issue_id"]
        res = client.patch(f"/api/v1/issues/{iid}/status",
                           json={"status": "Fixed"}, headers=auth_headers("a1"))
        assert res.status_code == 409
        body = res.get_json()
        assert body["code"] == "ERR_CONFLICT_STATE"
        assert body["details"]["status"] == {"current": "Pending", "target": "Fixed"}

    def test_assign_unknown_technician_is_404(self, client, roles, auth_headers):
        iid = _create(client, auth_headers("c1")).get_json()["issue_id"]
        res = client.post(f"/api/v1/issues/{iid}/assign",
                          json={"technician_id": "nobody"}, headers=auth_headers("a1"))
        assert res.status_code == 404
        assert res.get_json()["error"] == "Technician not found"

    def test_priority_override(self, client, roles, auth_headers):
        iid = _create(client, auth_headers("c1")).get_json()["issue_id"]
        res = client.patch(f"/api/v1/issues/{iid}/priority",
                           json={"priority": "Low"}, headers=auth_headers("a1"))
        assert res.status_code == 200
        assert res.get_json()["priority"] == "Low"
        res = client.patch(f"/api/v1/issues/{iid}/priority",
                           json={"priority": "Low"}, headers=auth_headers("c1"))
        assert res.status_code == 403

    def test_delete_then_404(self, client, roles, auth_headers):
        iid = _create(client, auth_headers("c1")).get_json()["issue_id"]
        client.post(f"/api/v1/issues/{iid}/comments",
                    json={"message": "Hi"}, headers=auth_headers("c1"))
        res = client.delete(f"/api/v1/issues/{iid}", headers=auth_headers("a1"))
        assert res.status_code == 200
        assert res.get_json()["deleted_comments"] == 1
        assert client.get(f"/api/v1/issues/{iid}", headers=auth_headers("c1")).status_code == 404
        res = client.post(f"/api/v1/issues/{iid}/comments",
                          json={"message": "Hello?"}, headers=auth_headers("c1"))
        assert res.status_code == 404
