"""Tests for the curfew override API endpoints."""
from datetime import timedelta

from rentalhub.core.time import utc_now
from rentalhub.models import CurfewModification


def request_for(client, headers, tenant_ids, reason=None):
    payload = {"tenant_ids": tenant_ids}
    if reason is not None:
        payload["reason"] = reason
    return client.post("/curfew/request", json=payload, headers=headers)


class TestRoomTenants:

    def test_lists_active_tenants_in_own_room(self, client, auth_headers, tenant, roommate, outsider, db_session):
        roommate.is_active = False
        db_session.commit()

        response = client.get("/curfew/room-tenants", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [t["tenant_name"] for t in data] == ["Alice"]
        assert data[0]["effective_status"] == "NORMAL"
        assert data[0]["effective_status_label"] == "Normal"

    def test_user_without_tenant_link_forbidden(self, client, auth_headers, test_user):
        response = client.get("/curfew/room-tenants", headers=auth_headers)
        assert response.status_code == 403
        assert "linked to a tenant" in response.json()["detail"]

    def test_requires_authentication(self, client):
        response = client.get("/curfew/room-tenants")
        assert response.status_code in (401, 403)


class TestRequestEndpoint:

    def test_request_for_self_and_roommate(self, client, auth_headers, tenant, roommate, admin_user):
        response = request_for(client, auth_headers, [tenant.tenant_id, roommate.tenant_id], "Birthday party")

        assert response.status_code == 200
        data = response.json()
        assert data["succeeded"] == 2
        assert data["failed"] == 0
        assert {r["new_status"] for r in data["results"]} == {"PENDING"}

    def test_request_outside_room_forbidden(self, client, auth_headers, tenant, outsider, db_session):
        response = request_for(client, auth_headers, [tenant.tenant_id, outsider.tenant_id])

        assert response.status_code == 403
        assert "in your room" in response.json()["detail"]
        assert db_session.query(CurfewModification).count() == 0

    def test_empty_selection(self, client, auth_headers, tenant):
        response = request_for(client, auth_headers, [])
        assert response.status_code == 400

    def test_partial_failure_still_200(self, client, auth_headers, admin_headers, tenant, roommate):
        request_for(client, auth_headers, [roommate.tenant_id])

        response = request_for(client, auth_headers, [tenant.tenant_id, roommate.tenant_id])

        assert response.status_code == 200
        data = response.json()
        assert data["succeeded"] == 1
        assert data["failed"] == 1
        failed = [r for r in data["results"] if not r["success"]][0]
        assert failed["tenant_id"] == roommate.tenant_id
        assert failed["error_code"] == "INVALID_TRANSITION"
        assert failed["old_status"] == "PENDING"

    def test_admin_may_request_for_any_room(self, client, admin_headers, outsider):
        response = request_for(client, admin_headers, [outsider.tenant_id])
        assert response.status_code == 200
        assert response.json()["succeeded"] == 1

    def test_reason_whitespace_stored_as_none(self, client, auth_headers, tenant, db_session):
        request_for(client, auth_headers, [tenant.tenant_id], "   ")
        entry = db_session.query(CurfewModification).one()
        assert entry.reason is None


class TestDecisionEndpoints:

    def test_pending_list_for_admin(self, client, auth_headers, admin_headers, tenant, roommate):
        request_for(client, auth_headers, [tenant.tenant_id], "Late train")

        response = client.get("/curfew/pending", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["tenant_id"] == tenant.tenant_id
        assert data[0]["room_number"] == 101
        assert data[0]["latest_request"]["reason"] == "Late train"
        assert data[0]["latest_request"]["modifier"]["email"] == "test@example.com"

    def test_pending_list_admin_only(self, client, auth_headers, tenant):
        response = client.get("/curfew/pending", headers=auth_headers)
        assert response.status_code == 403

    def test_approve_and_notify(self, client, auth_headers, admin_headers, tenant, db_session, test_user):
        request_for(client, auth_headers, [tenant.tenant_id])

        response = client.post(
            "/curfew/approve",
            json={"tenant_ids": [tenant.tenant_id], "expected_status": "PENDING"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        result = response.json()["results"][0]
        assert result["success"] is True
        assert result["new_status"] == "APPROVED_TEMPORARY"

        notes = client.get("/notifications/", headers=auth_headers).json()
        assert notes["unread_count"] == 1
        assert notes["notifications"][0]["notification_type"] == "curfew_approved"

    def test_user_cannot_approve(self, client, auth_headers, tenant):
        request_for(client, auth_headers, [tenant.tenant_id])
        response = client.post("/curfew/approve", json={"tenant_ids": [tenant.tenant_id]}, headers=auth_headers)
        assert response.status_code == 403

    def test_double_approval_reports_current_status(self, client, auth_headers, admin_headers, tenant):
        request_for(client, auth_headers, [tenant.tenant_id])
        client.post("/curfew/approve", json={"tenant_ids": [tenant.tenant_id]}, headers=admin_headers)

        response = client.post(
            "/curfew/approve",
            json={"tenant_ids": [tenant.tenant_id], "is_permanent": True},
            headers=admin_headers,
        )

        assert response.status_code == 200
        result = response.json()["results"][0]
        assert result["success"] is False
        assert result["error_code"] == "INVALID_TRANSITION"
        assert result["old_status"] == "APPROVED_TEMPORARY"

    def test_stale_expected_status_is_conflict(self, client, auth_headers, admin_headers, tenant):
        request_for(client, auth_headers, [tenant.tenant_id])
        client.post("/curfew/reject", json={"tenant_ids": [tenant.tenant_id]}, headers=admin_headers)

        response = client.post(
            "/curfew/reject",
            json={"tenant_ids": [tenant.tenant_id], "expected_status": "PENDING"},
            headers=admin_headers,
        )

        result = response.json()["results"][0]
        assert result["error_code"] == "CONFLICT_ON_WRITE"
        assert result["old_status"] == "NORMAL"

    def test_reject_empty_selection(self, client, admin_headers):
        response = client.post("/curfew/reject", json={"tenant_ids": []}, headers=admin_headers)
        assert response.status_code == 400


class TestResetAndManualChangeEndpoints:

    def test_reset(self, client, auth_headers, admin_headers, tenant):
        request_for(client, auth_headers, [tenant.tenant_id])

        response = client.post(
            "/curfew/reset",
            json={"tenant_id": tenant.tenant_id, "reason": "Request withdrawn"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["modification_type"] == "RESET"
        assert data["old_status"] == "PENDING"
        assert data["new_status"] == "NORMAL"
        assert data["modifier"]["email"] == "admin@example.com"

    def test_reset_conflict_returns_409_with_context(self, client, admin_headers, tenant):
        response = client.post(
            "/curfew/reset",
            json={"tenant_id": tenant.tenant_id, "expected_status": "APPROVED_PERMANENT"},
            headers=admin_headers,
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "CONFLICT_ON_WRITE"
        assert detail["tenant_id"] == tenant.tenant_id
        assert detail["current_status"] == "NORMAL"
        assert detail["expected_status"] == "APPROVED_PERMANENT"

    def test_reset_unknown_tenant(self, client, admin_headers):
        response = client.post("/curfew/reset", json={"tenant_id": 9999}, headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NOT_FOUND"

    def test_manual_change(self, client, admin_headers, tenant):
        response = client.post(
            "/curfew/manual-change",
            json={"tenant_id": tenant.tenant_id, "new_status": "APPROVED_PERMANENT"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["modification_type"] == "MANUAL_CHANGE"
        assert data["is_permanent"] is True
        assert data["reason"] == "Manual change by admin"

    def test_manual_change_invalid_status(self, client, admin_headers, tenant):
        response = client.post(
            "/curfew/manual-change",
            json={"tenant_id": tenant.tenant_id, "new_status": "SUSPENDED"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_manual_change_admin_only(self, client, auth_headers, tenant):
        response = client.post(
            "/curfew/manual-change",
            json={"tenant_id": tenant.tenant_id, "new_status": "NORMAL"},
            headers=auth_headers,
        )
        assert response.status_code == 403


class TestStatusAndHistoryEndpoints:

    def test_status_expires_lazily(self, client, auth_headers, admin_headers, tenant):
        request_for(client, auth_headers, [tenant.tenant_id])
        client.post("/curfew/approve", json={"tenant_ids": [tenant.tenant_id]}, headers=admin_headers)

        now_response = client.get(f"/curfew/tenants/{tenant.tenant_id}/status", headers=auth_headers)
        assert now_response.status_code == 200
        now_data = now_response.json()
        assert now_data["stored_status"] == "APPROVED_TEMPORARY"
        assert now_data["effective_status"] == "APPROVED_TEMPORARY"
        assert now_data["expires_at"] is not None

        later = (utc_now() + timedelta(days=2)).isoformat()
        later_data = client.get(
            f"/curfew/tenants/{tenant.tenant_id}/status",
            params={"as_of": later},
            headers=auth_headers,
        ).json()
        assert later_data["stored_status"] == "APPROVED_TEMPORARY"
        assert later_data["effective_status"] == "NORMAL"

    def test_status_outside_room_forbidden(self, client, auth_headers, tenant, outsider):
        response = client.get(f"/curfew/tenants/{outsider.tenant_id}/status", headers=auth_headers)
        assert response.status_code == 403

    def test_history_newest_first(self, client, auth_headers, admin_headers, tenant):
        request_for(client, auth_headers, [tenant.tenant_id])
        client.post("/curfew/reject", json={"tenant_ids": [tenant.tenant_id]}, headers=admin_headers)
        request_for(client, auth_headers, [tenant.tenant_id])

        response = client.get(f"/curfew/modifications/{tenant.tenant_id}", headers=auth_headers)

        assert response.status_code == 200
        assert [e["modification_type"] for e in response.json()] == ["REQUEST", "REJECT", "REQUEST"]

    def test_history_unknown_tenant(self, client, admin_headers):
        response = client.get("/curfew/modifications/9999", headers=admin_headers)
        assert response.status_code == 404


class TestExpireEndpoint:

    def test_nothing_to_expire(self, client, admin_headers, tenant):
        response = client.post("/curfew/expire-temporary", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"succeeded": 0, "failed": 0, "results": []}

    def test_admin_only(self, client, auth_headers):
        response = client.post("/curfew/expire-temporary", headers=auth_headers)
        assert response.status_code == 403
