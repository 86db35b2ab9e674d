"""Tests for room and tenant management endpoints."""
from rentalhub.core.curfew_workflow import manual_change, request_override
from rentalhub.models import CurfewModification


class TestRooms:

    def test_create_room(self, client, admin_headers):
        response = client.post("/rooms/", json={"room_number": 305, "floor": 3}, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["room_number"] == 305

    def test_duplicate_room_number(self, client, admin_headers, room):
        response = client.post("/rooms/", json={"room_number": 101}, headers=admin_headers)
        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

    def test_rooms_admin_only(self, client, auth_headers):
        response = client.post("/rooms/", json={"room_number": 999}, headers=auth_headers)
        assert response.status_code == 403
        assert client.get("/rooms/", headers=auth_headers).status_code == 403

    def test_list_rooms_counts_active_tenants(self, client, admin_headers, db_session, tenant, roommate, other_room):
        roommate.is_active = False
        db_session.commit()

        response = client.get("/rooms/", headers=admin_headers)

        assert response.status_code == 200
        counts = {r["room_number"]: r["active_tenant_count"] for r in response.json()}
        assert counts == {101: 1, 202: 0}


class TestTenantOnboarding:

    def test_create_tenant_starts_normal(self, client, admin_headers, room, db_session):
        response = client.post(
            "/tenants/",
            json={"name": "  Dana  ", "room_id": room.room_id, "phone": "0901234567"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Dana"
        assert data["curfew_status"] == "NORMAL"
        assert data["effective_curfew_status"] == "NORMAL"
        assert data["is_active"] is True
        assert data["move_in_date"] is not None
        assert db_session.query(CurfewModification).count() == 0

    def test_create_tenant_unknown_room(self, client, admin_headers):
        response = client.post("/tenants/", json={"name": "Eve", "room_id": 9999}, headers=admin_headers)
        assert response.status_code == 400

    def test_blank_name_rejected(self, client, admin_headers, room):
        response = client.post("/tenants/", json={"name": "   ", "room_id": room.room_id}, headers=admin_headers)
        assert response.status_code == 422

    def test_user_linked_to_one_tenant_only(self, client, admin_headers, room, tenant, test_user):
        response = client.post(
            "/tenants/",
            json={"name": "Second Alice", "room_id": room.room_id, "user_id": test_user.user_id},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "already linked" in response.json()["detail"]

    def test_tenant_management_admin_only(self, client, auth_headers, room, tenant):
        assert client.get("/tenants/", headers=auth_headers).status_code == 403
        response = client.post("/tenants/", json={"name": "Zed", "room_id": room.room_id}, headers=auth_headers)
        assert response.status_code == 403


class TestMoveOut:

    def test_move_out_keeps_curfew_history(self, client, admin_headers, db_session, tenant, admin_actor):
        manual_change(db_session, tenant.tenant_id, "APPROVED_PERMANENT", admin_actor)

        response = client.post(
            f"/tenants/{tenant.tenant_id}/move-out",
            json={"move_out_date": "2026-04-30"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["is_active"] is False
        assert data["move_out_date"] == "2026-04-30"
        assert data["curfew_status"] == "APPROVED_PERMANENT"
        assert db_session.query(CurfewModification).filter(
            CurfewModification.tenant_id == tenant.tenant_id
        ).count() == 1

    def test_move_out_twice(self, client, admin_headers, tenant):
        client.post(f"/tenants/{tenant.tenant_id}/move-out", json={}, headers=admin_headers)
        response = client.post(f"/tenants/{tenant.tenant_id}/move-out", json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_moved_out_tenant_hidden_by_default(self, client, admin_headers, tenant, roommate):
        client.post(f"/tenants/{roommate.tenant_id}/move-out", json={}, headers=admin_headers)

        active = client.get("/tenants/", headers=admin_headers).json()
        everyone = client.get("/tenants/", params={"include_inactive": True}, headers=admin_headers).json()

        assert [t["name"] for t in active] == ["Alice"]
        assert sorted(t["name"] for t in everyone) == ["Alice", "Bob"]

    def test_moved_out_tenant_cannot_be_requested(self, db_session, tenant, roommate, user_actor, client, admin_headers):
        client.post(f"/tenants/{roommate.tenant_id}/move-out", json={}, headers=admin_headers)
        db_session.expire_all()

        results = request_override(db_session, [roommate.tenant_id], user_actor)

        assert results[0].success is False
        assert results[0].error_code == "NOT_FOUND"

    def test_get_unknown_tenant(self, client, admin_headers):
        response = client.get("/tenants/9999", headers=admin_headers)
        assert response.status_code == 404
