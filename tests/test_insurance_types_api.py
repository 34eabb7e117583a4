"""API tests for the insurance type catalogue."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from salestrack.models.insurance_types import InsuranceType

from conftest import auth_headers


class TestInsuranceTypes:
    def test_admin_creates_type(self, client, admin):
        response = client.post(
            "/insurance-types",
            json={"name": " Bagages ", "commission_amount": "7.50"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 201
        assert response.json()["name"] == "Bagages"
        assert Decimal(response.json()["commission_amount"]) == Decimal("7.50")

    def test_duplicate_name_conflicts(self, client, admin, annulation):
        response = client.post(
            "/insurance-types",
            json={"name": "Annulation", "commission_amount": "1"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 409

    def test_negative_commission_is_rejected(self, client, admin):
        response = client.post(
            "/insurance-types",
            json={"name": "Bagages", "commission_amount": "-1"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 422

    def test_employee_reads_but_cannot_write(self, client, julie, annulation):
        assert client.get("/insurance-types", headers=auth_headers(julie)).status_code == 200

        response = client.post(
            "/insurance-types",
            json={"name": "Bagages", "commission_amount": "1"},
            headers=auth_headers(julie),
        )
        assert response.status_code == 403

        response = client.put(
            f"/insurance-types/{annulation.id}",
            json={"commission_amount": "99"},
            headers=auth_headers(julie),
        )
        assert response.status_code == 403

    def test_soft_delete_hides_from_employees(self, client, admin, julie, annulation, multirisque):
        response = client.delete(f"/insurance-types/{annulation.id}", headers=auth_headers(admin))
        assert response.status_code == 204

        names = [t["name"] for t in client.get("/insurance-types", headers=auth_headers(julie)).json()]
        assert names == ["Multirisque"]

        names = [
            t["name"]
            for t in client.get(
                "/insurance-types", params={"include_inactive": True}, headers=auth_headers(admin)
            ).json()
        ]
        assert names == ["Annulation", "Multirisque"]

    def test_update_rename_conflict(self, client, admin, annulation, multirisque):
        response = client.put(
            f"/insurance-types/{multirisque.id}",
            json={"name": "Annulation"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 409

    def test_update_unknown_type(self, client, admin):
        response = client.put("/insurance-types/999", json={"name": "X"}, headers=auth_headers(admin))
        assert response.status_code == 404

    @pytest.mark.parametrize("name", ["   ", "\t"])
    def test_blank_name_is_rejected(self, client, db, admin, name):
        response = client.post(
            "/insurance-types",
            json={"name": name, "commission_amount": "5.00"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 422
        assert "name" in response.json()["errors"]
        assert db.query(InsuranceType).count() == 0

    def test_rename_to_blank_is_rejected(self, client, db, admin, annulation):
        response = client.put(
            f"/insurance-types/{annulation.id}",
            json={"name": "   "},
            headers=auth_headers(admin),
        )
        assert response.status_code == 422
        assert "name" in response.json()["errors"]
        db.refresh(annulation)
        assert annulation.name == "Annulation"

    def test_concurrent_duplicate_hits_unique_index(self, client, admin, annulation):
        # Another request inserted the same name between the check and the commit
        with patch("salestrack.routers.insurance_types._ensure_unique_name"):
            response = client.post(
                "/insurance-types",
                json={"name": "Annulation", "commission_amount": "1"},
                headers=auth_headers(admin),
            )
        assert response.status_code == 409

        # The session was rolled back and stays usable
        response = client.post(
            "/insurance-types",
            json={"name": "Bagages", "commission_amount": "1"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 201
