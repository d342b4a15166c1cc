# tests/test_referral.py

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from httpx import AsyncClient

from conftest import auth_headers_for
from partnerhub.crud import click as crud_click
from partnerhub.models.click import Click, CLICK_KIND_BONUS, CLICK_KIND_DIRECT
from partnerhub.models.change_event import ChangeEvent


def add_clicks(db, partner, count: int, type: str = CLICK_KIND_DIRECT, ip_prefix: str = "10.0.0"):
    clicks = [
        crud_click.create_click(db, partner_id=partner.id, type=type, ip_address=f"{ip_prefix}.{i}", user_agent="pytest")
        for i in range(count)
    ]
    db.commit()
    return clicks


# --- Пригласивший партнер ---

async def test_set_referrer(client: AsyncClient, db_session, make_partner):
    upstream = make_partner(partner_code="UPSTREAM1")
    partner = make_partner()

    response = await client.put(
        "/api/v1/users/me/referrer", json={"partner_code": "UPSTREAM1"}, headers=auth_headers_for(partner)
    )

    assert response.status_code == 200
    assert response.json()["referred_by"] == "UPSTREAM1"
    event = db_session.query(ChangeEvent).filter(ChangeEvent.table_name == "partners").one()
    assert event.partner_id == upstream.id


async def test_referrer_is_immutable(client: AsyncClient, db_session, make_partner):
    make_partner(partner_code="UPSTREAM1")
    make_partner(partner_code="UPSTREAM2")
    partner = make_partner(referred_by="UPSTREAM1")

    response = await client.put(
        "/api/v1/users/me/referrer", json={"partner_code": "UPSTREAM2"}, headers=auth_headers_for(partner)
    )

    assert response.status_code == 409
    db_session.refresh(partner)
    assert partner.referred_by == "UPSTREAM1"


async def test_referrer_unknown_code(client: AsyncClient, db_session, test_partner, auth_headers):
    response = await client.put("/api/v1/users/me/referrer", json={"partner_code": "NOPE99"}, headers=auth_headers)
    assert response.status_code == 404


async def test_referrer_cannot_be_self(client: AsyncClient, db_session, test_partner, auth_headers):
    response = await client.put("/api/v1/users/me/referrer", json={"partner_code": "PARTNER1"}, headers=auth_headers)
    assert response.status_code == 400


async def test_referrer_cycle_is_rejected(client: AsyncClient, db_session, make_partner):
    # ROOT0001 <- MID00001 <- LEAF0001; ROOT0001 пытается стать субпартнером LEAF0001
    root = make_partner(partner_code="ROOT0001")
    make_partner(partner_code="MID00001", referred_by="ROOT0001")
    make_partner(partner_code="LEAF0001", referred_by="MID00001")

    response = await client.put(
        "/api/v1/users/me/referrer", json={"partner_code": "LEAF0001"}, headers=auth_headers_for(root)
    )

    assert response.status_code == 400
    db_session.refresh(root)
    assert root.referred_by is None


# --- Реферальная ссылка ---

async def test_referral_link_is_created_once(client: AsyncClient, db_session, test_partner, auth_headers):
    first = await client.get("/api/v1/users/me/referral-link", headers=auth_headers)
    second = await client.get("/api/v1/users/me/referral-link", headers=auth_headers)

    assert first.status_code == 200
    data = first.json()
    assert data == second.json()
    assert data["partner_code"] == "PARTNER1"
    assert data["referral_link"] == "https://tradingcircle.space/join?ref=PARTNER1"
    assert data["short_url"].endswith(f"/{data['short_code']}")
    assert len(data["short_code"]) == 6


async def test_referral_short_link_redirects_to_join_page(client: AsyncClient, db_session, test_partner, auth_headers):
    link = (await client.get("/api/v1/users/me/referral-link", headers=auth_headers)).json()

    response = await client.get(f"/{link['short_code']}")

    assert response.status_code == 302
    assert response.headers["location"] == link["referral_link"]
    assert crud_click.count_clicks(db_session, test_partner.id, type=CLICK_KIND_DIRECT) == 1


# --- Статистика и заработок ---

async def test_stats(client: AsyncClient, db_session, test_partner, auth_headers, make_partner):
    add_clicks(db_session, test_partner, 7)
    add_clicks(db_session, test_partner, 3, type=CLICK_KIND_BONUS, ip_prefix="10.0.1")
    make_partner(referred_by="PARTNER1")

    response = await client.get("/api/v1/users/me/stats", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["direct_clicks"] == 7
    assert data["bonus_clicks"] == 3
    assert data["total_clicks"] == 10
    assert Decimal(data["earnings"]) == Decimal("1.00")
    assert Decimal(data["available_balance"]) == Decimal("1.00")
    assert data["sub_partners_count"] == 1
    assert data["days_until_withdrawal"] == 30
    assert data["is_eligible_for_withdrawal"] is False


async def test_public_earnings(client: AsyncClient, db_session, test_partner):
    add_clicks(db_session, test_partner, 4)
    add_clicks(db_session, test_partner, 1, type=CLICK_KIND_BONUS, ip_prefix="10.0.1")

    response = await client.get("/api/v1/partners/partner1/earnings")

    assert response.status_code == 200
    data = response.json()
    assert data["partner_code"] == "PARTNER1"
    assert data["total_clicks"] == 5
    assert Decimal(data["earnings"]) == Decimal("0.50")


async def test_public_earnings_unknown_partner(client: AsyncClient, db_session):
    response = await client.get("/api/v1/partners/NOPE99/earnings")
    assert response.status_code == 404


# --- Субпартнеры ---

async def test_sub_partners_runs_reconciliation(client: AsyncClient, db_session, test_partner, auth_headers, make_partner):
    active = make_partner(referred_by="PARTNER1", username="active_one")
    inactive = make_partner(referred_by="PARTNER1", username="sleepy_one")
    make_partner(username="stranger")
    add_clicks(db_session, active, 10)
    old_clicks = add_clicks(db_session, inactive, 5, ip_prefix="10.0.1")
    for click in old_clicks:
        click.created_at = datetime.now(timezone.utc) - timedelta(days=45)
    db_session.commit()

    response = await client.get("/api/v1/users/me/sub-partners", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["patched"] == 3
    assert data["total_bonus_clicks_earned"] == 3
    by_name = {item["username"]: item for item in data["items"]}
    assert set(by_name) == {"active_one", "sleepy_one"}
    assert by_name["active_one"]["total_clicks"] == 10
    assert by_name["active_one"]["bonus_clicks_earned"] == 2
    assert by_name["active_one"]["status"] == "active"
    assert by_name["sleepy_one"]["status"] == "inactive"
    assert db_session.query(Click).filter(
        Click.partner_id == test_partner.id, Click.type == CLICK_KIND_BONUS
    ).count() == 3


async def test_sub_partners_search(client: AsyncClient, db_session, test_partner, auth_headers, make_partner):
    make_partner(referred_by="PARTNER1", username="alice")
    make_partner(referred_by="PARTNER1", username="bob")

    response = await client.get("/api/v1/users/me/sub-partners", params={"search": "ali"}, headers=auth_headers)

    assert [item["username"] for item in response.json()["items"]] == ["alice"]


async def test_reconcile_endpoint(client: AsyncClient, db_session, test_partner, auth_headers, make_partner):
    downline = make_partner(referred_by="PARTNER1")
    add_clicks(db_session, downline, 10)

    first = await client.post("/api/v1/users/me/sub-partners/reconcile", headers=auth_headers)
    second = await client.post("/api/v1/users/me/sub-partners/reconcile", headers=auth_headers)

    assert first.json() == {"patched": 2}
    assert second.json() == {"patched": 0}


async def test_tracked_clicks_credit_upstream_end_to_end(client: AsyncClient, db_session, make_partner):
    upstream = make_partner(partner_code="UPSTREAM1")
    make_partner(partner_code="DOWNLINE1", referred_by="UPSTREAM1")

    for i in range(10):
        response = await client.post("/", json={"referralCode": "DOWNLINE1"}, headers={"x-real-ip": f"10.9.0.{i}"})
        assert response.status_code == 200

    # Бонусы уже начислены на горячем пути, сверке досчитывать нечего
    reconcile = await client.post("/api/v1/users/me/sub-partners/reconcile", headers=auth_headers_for(upstream))
    stats = await client.get("/api/v1/users/me/stats", headers=auth_headers_for(upstream))

    assert reconcile.json() == {"patched": 0}
    assert stats.json()["bonus_clicks"] == 2
    assert Decimal(stats.json()["earnings"]) == Decimal("0.20")


async def test_endpoints_require_auth(client: AsyncClient, db_session):
    response = await client.get("/api/v1/users/me/stats")
    assert response.status_code in (401, 403)

    response = await client.get("/api/v1/users/me/stats", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


async def test_recent_clicks(client: AsyncClient, db_session, test_partner, auth_headers):
    add_clicks(db_session, test_partner, 3)
    add_clicks(db_session, test_partner, 1, type=CLICK_KIND_BONUS, ip_prefix="10.0.1")

    response = await client.get("/api/v1/users/me/clicks", params={"limit": 2}, headers=auth_headers)

    assert response.status_code == 200
    assert [c["type"] for c in response.json()] == ["bonus", "direct"]
