"""API tests for bonus rules, previews and the grant / approve / pay flow."""

from datetime import timedelta
from decimal import Decimal

from salestrack.models.bonuses import Bonus, BonusRule

from conftest import auth_headers, make_sale


def _objective(client, admin, now, employee="julie", target_amount="20.00"):
    start = now.date().replace(day=1)
    end = (start + timedelta(days=32)).replace(day=1) - timedelta(days=1)
    response = client.post(
        "/objectives",
        json={
            "employee_name": employee,
            "objective_type": "monthly",
            "target_amount": target_amount,
            "period_start": str(start),
            "period_end": str(end),
        },
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    return response.json()


def _rule(client, admin, name, minimum, rate, maximum=None):
    payload = {"name": name, "min_achievement_percent": minimum, "bonus_percent": rate}
    if maximum is not None:
        payload["max_achievement_percent"] = maximum
    return client.post("/bonuses/rules", json=payload, headers=auth_headers(admin))


class TestBonusRules:
    def test_admin_creates_rule(self, client, admin):
        response = _rule(client, admin, "  Silver ", "100", "10")

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Silver"
        assert Decimal(body["bonus_percent"]) == Decimal("10")
        assert body["max_achievement_percent"] is None

    def test_duplicate_and_blank_names(self, client, admin):
        _rule(client, admin, "Silver", "100", "10")

        assert _rule(client, admin, "Silver", "50", "5").status_code == 409

        response = _rule(client, admin, "   ", "50", "5")
        assert response.status_code == 422
        assert "name" in response.json()["errors"]

    def test_inverted_range_is_rejected(self, client, admin):
        response = _rule(client, admin, "Bronze", "80", "5", maximum="50")
        assert response.status_code == 422
        assert "max_achievement_percent" in response.json()["errors"]

    def test_rate_above_one_hundred_is_rejected(self, client, admin):
        assert _rule(client, admin, "Greedy", "50", "150").status_code == 422

    def test_employee_reads_but_cannot_write(self, client, admin, julie):
        _rule(client, admin, "Silver", "100", "10")

        assert _rule(client, julie, "Mine", "0", "50").status_code == 403

        body = client.get("/bonuses/rules", headers=auth_headers(julie)).json()
        assert [rule["name"] for rule in body] == ["Silver"]

    def test_update_and_soft_delete(self, client, db, admin, julie):
        rule = _rule(client, admin, "Bronze", "50", "5", maximum="100").json()

        response = client.put(
            f"/bonuses/rules/{rule['id']}",
            json={"bonus_percent": "7.5", "max_achievement_percent": None},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert Decimal(response.json()["bonus_percent"]) == Decimal("7.5")
        assert response.json()["max_achievement_percent"] is None

        response = client.delete(f"/bonuses/rules/{rule['id']}", headers=auth_headers(admin))
        assert response.status_code == 204
        assert db.query(BonusRule).count() == 1

        assert client.get("/bonuses/rules", headers=auth_headers(julie)).json() == []
        body = client.get(
            "/bonuses/rules", params={"include_inactive": True}, headers=auth_headers(admin)
        ).json()
        assert [rule["is_active"] for rule in body] == [False]

    def test_update_unknown_rule(self, client, admin):
        response = client.put("/bonuses/rules/999", json={"bonus_percent": "1"}, headers=auth_headers(admin))
        assert response.status_code == 404


class TestBonuses:
    def test_preview_follows_sales(self, client, db, admin, julie, annulation, now):
        _rule(client, admin, "Bronze", "50", "5", maximum="100")
        _rule(client, admin, "Silver", "100", "10")
        objective = _objective(client, admin, now)

        make_sale(db, julie, now, [annulation])
        body = client.get(f"/bonuses/preview/{objective['id']}", headers=auth_headers(julie)).json()
        assert Decimal(body["achievement_percent"]) == Decimal("50.00")
        assert body["bonus_rule_name"] == "Bronze"
        assert Decimal(body["bonus_amount"]) == Decimal("0.50")

        make_sale(db, julie, now, [annulation])
        make_sale(db, julie, now, [annulation])
        body = client.get(f"/bonuses/preview/{objective['id']}", headers=auth_headers(julie)).json()
        assert Decimal(body["achievement_percent"]) == Decimal("150.00")
        assert body["bonus_rule_name"] == "Silver"
        assert Decimal(body["bonus_amount"]) == Decimal("3.00")

    def test_preview_of_someone_elses_objective(self, client, admin, julie, sherman, now):
        objective = _objective(client, admin, now, employee="sherman")
        response = client.get(f"/bonuses/preview/{objective['id']}", headers=auth_headers(julie))
        assert response.status_code == 403

    def test_grant_freezes_figures_once(self, client, db, admin, julie, annulation, now):
        _rule(client, admin, "Silver", "100", "10")
        objective = _objective(client, admin, now)
        make_sale(db, julie, now, [annulation])
        make_sale(db, julie, now, [annulation])

        response = client.post(
            "/bonuses", json={"objective_id": objective["id"], "notes": "March"}, headers=auth_headers(admin)
        )
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["employee_name"] == "julie"
        assert Decimal(body["bonus_amount"]) == Decimal("2.00")

        # Later sales do not change a granted bonus
        make_sale(db, julie, now, [annulation])
        stored = client.get(f"/bonuses/{body['id']}", headers=auth_headers(julie)).json()
        assert Decimal(stored["bonus_amount"]) == Decimal("2.00")

        again = client.post("/bonuses", json={"objective_id": objective["id"]}, headers=auth_headers(admin))
        assert again.status_code == 409
        assert db.query(Bonus).count() == 1

    def test_grant_unknown_objective(self, client, admin):
        response = client.post("/bonuses", json={"objective_id": 999}, headers=auth_headers(admin))
        assert response.status_code == 404

    def test_employee_cannot_grant(self, client, admin, julie, now):
        objective = _objective(client, admin, now)
        response = client.post("/bonuses", json={"objective_id": objective["id"]}, headers=auth_headers(julie))
        assert response.status_code == 403

    def test_status_flow(self, client, admin, julie, now):
        objective = _objective(client, admin, now)
        bonus = client.post("/bonuses", json={"objective_id": objective["id"]}, headers=auth_headers(admin)).json()
        url = f"/bonuses/{bonus['id']}/status"

        response = client.patch(url, json={"status": "paid"}, headers=auth_headers(admin))
        assert response.status_code == 422
        assert "status" in response.json()["errors"]

        assert client.patch(url, json={"status": "approved"}, headers=auth_headers(julie)).status_code == 403

        body = client.patch(url, json={"status": "approved"}, headers=auth_headers(admin)).json()
        assert body["status"] == "approved"
        assert body["approved_by"] == "admin"
        assert body["approved_at"] is not None

        body = client.patch(url, json={"status": "paid"}, headers=auth_headers(admin)).json()
        assert body["status"] == "paid"
        assert body["paid_at"] is not None

    def test_list_is_scoped(self, client, admin, julie, sherman, now):
        for employee in ("julie", "sherman"):
            objective = _objective(client, admin, now, employee=employee)
            client.post("/bonuses", json={"objective_id": objective["id"]}, headers=auth_headers(admin))

        body = client.get("/bonuses", headers=auth_headers(julie)).json()
        assert [bonus["employee_name"] for bonus in body] == ["julie"]

        body = client.get("/bonuses", params={"status": "pending"}, headers=auth_headers(admin)).json()
        assert len(body) == 2

        sherman_bonus = client.get("/bonuses", params={"employee_name": "sherman"}, headers=auth_headers(admin)).json()
        response = client.get(f"/bonuses/{sherman_bonus[0]['id']}", headers=auth_headers(julie))
        assert response.status_code == 403
