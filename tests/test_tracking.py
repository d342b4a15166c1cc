# tests/test_tracking.py

from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from starlette.requests import Request

from partnerhub.core.cors import ApiCORSMiddleware
from partnerhub.crud import click as crud_click
from partnerhub.models.click import Click
from partnerhub.routers import tracking
from partnerhub.routers.tracking import get_origin_address, get_user_agent
from partnerhub.services import attribution as attribution_service

LANDING_URL = "https://example.com/landing?ref=PARTNER1"


def make_request(headers: dict) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def create_landing_link(db_session, partner):
    return crud_click.create_short_link(
        db_session, short_code="abc123", target_url=LANDING_URL, partner_id=partner.id
    )


# --- Метаданные запроса ---

def test_origin_address_prefers_first_forwarded_entry():
    request = make_request({"x-forwarded-for": "203.0.113.7, 10.0.0.1", "x-real-ip": "198.51.100.1"})
    assert get_origin_address(request) == "203.0.113.7"


def test_origin_address_falls_back_to_real_ip_and_placeholder():
    assert get_origin_address(make_request({"x-real-ip": "198.51.100.1"})) == "198.51.100.1"
    assert get_origin_address(make_request({})) == "0.0.0.0"


def test_user_agent_placeholder():
    assert get_user_agent(make_request({})) == "Unknown"
    assert get_user_agent(make_request({"user-agent": "Mozilla/5.0"})) == "Mozilla/5.0"


# --- Редирект ---

async def test_redirect_records_direct_click(client: AsyncClient, db_session, test_partner):
    create_landing_link(db_session, test_partner)

    response = await client.get("/abc123", headers={"x-forwarded-for": "203.0.113.7"})

    assert response.status_code == 302
    assert response.headers["location"] == LANDING_URL
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert response.headers["pragma"] == "no-cache"
    assert response.headers["expires"] == "0"
    clicks = db_session.query(Click).all()
    assert len(clicks) == 1
    assert clicks[0].partner_id == test_partner.id
    assert clicks[0].type == "direct"
    assert clicks[0].ip_address == "203.0.113.7"


async def test_repeated_redirect_redirects_without_new_click(client: AsyncClient, db_session, test_partner):
    create_landing_link(db_session, test_partner)
    headers = {"x-forwarded-for": "203.0.113.7"}

    first = await client.get("/abc123", headers=headers)
    second = await client.get("/abc123", headers=headers)

    assert first.status_code == 302
    assert second.status_code == 302
    assert second.headers["location"] == LANDING_URL
    assert db_session.query(Click).count() == 1


async def test_redirect_uses_last_path_segment(client: AsyncClient, db_session, test_partner):
    create_landing_link(db_session, test_partner)

    response = await client.get("/r/abc123")

    assert response.status_code == 302
    assert response.headers["location"] == LANDING_URL


async def test_redirect_unknown_code(client: AsyncClient, db_session):
    response = await client.get("/nope00")

    assert response.status_code == 404
    assert response.json() == {"error": "Invalid short code"}


async def test_redirect_without_code(client: AsyncClient, db_session):
    root = await client.get("/")
    trailing = await client.get("/r/")

    assert root.status_code == 400
    assert root.json() == {"error": "No short code provided"}
    assert trailing.status_code == 400
    assert trailing.json() == {"error": "No short code provided"}


async def test_redirect_survives_click_recording_failure(client: AsyncClient, db_session, test_partner, mocker):
    create_landing_link(db_session, test_partner)
    mocker.patch.object(attribution_service, "register_click", side_effect=SQLAlchemyError("timeout"))

    response = await client.get("/abc123")

    assert response.status_code == 302
    assert response.headers["location"] == LANDING_URL


async def test_redirect_unexpected_failure(client: AsyncClient, db_session, mocker):
    mocker.patch.object(attribution_service, "resolve", side_effect=RuntimeError("store unavailable"))

    response = await client.get("/abc123")

    assert response.status_code == 500
    assert response.json() == {"error": "store unavailable"}


async def test_preflight(client: AsyncClient, db_session):
    response = await client.options("/abc123")

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.content == b""


BROWSER_PREFLIGHT = {
    "Origin": "https://landing.example.org",
    "Access-Control-Request-Method": "POST",
    "Access-Control-Request-Headers": "content-type",
}


async def test_browser_preflight_for_tracking(client: AsyncClient, db_session):
    response = await client.options("/", headers=BROWSER_PREFLIGHT)

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "content-type" in response.headers["access-control-allow-headers"]


async def test_tracking_preflight_ignores_api_origin_allow_list():
    api = APIRouter(prefix="/api/v1")

    @api.get("/ping")
    def ping():
        return {"ok": True}

    app = FastAPI()
    app.add_middleware(
        ApiCORSMiddleware,
        allow_origins=["https://tradingcircle.space", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api)
    app.include_router(tracking.router)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        tracking_preflight = await ac.options("/", headers=BROWSER_PREFLIGHT)
        redirect_preflight = await ac.options("/abc123", headers=BROWSER_PREFLIGHT)
        api_preflight = await ac.options("/api/v1/ping", headers=BROWSER_PREFLIGHT)
        allowed_preflight = await ac.options(
            "/api/v1/ping", headers={**BROWSER_PREFLIGHT, "Origin": "https://tradingcircle.space"}
        )

    assert tracking_preflight.status_code == 200
    assert tracking_preflight.headers["access-control-allow-origin"] == "*"
    assert redirect_preflight.status_code == 200
    assert redirect_preflight.headers["access-control-allow-origin"] == "*"
    assert api_preflight.status_code == 400
    assert allowed_preflight.status_code == 200
    assert allowed_preflight.headers["access-control-allow-origin"] == "https://tradingcircle.space"


# --- Трекинг клика по коду ---

async def test_track_click_success(client: AsyncClient, db_session, test_partner):
    response = await client.post("/", json={"referralCode": "PARTNER1"}, headers={"x-real-ip": "198.51.100.1"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Click registered successfully"}
    click = db_session.query(Click).one()
    assert click.partner_id == test_partner.id
    assert click.ip_address == "198.51.100.1"


async def test_track_click_duplicate(client: AsyncClient, db_session, test_partner):
    headers = {"x-real-ip": "198.51.100.1"}
    await client.post("/", json={"referralCode": "PARTNER1"}, headers=headers)

    response = await client.post("/", json={"referralCode": "PARTNER1"}, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Click already recorded recently"}
    assert db_session.query(Click).count() == 1


async def test_track_click_unknown_code(client: AsyncClient, db_session, test_partner):
    response = await client.post("/", json={"referralCode": "NOPE99"})

    assert response.status_code == 404
    assert response.json() == {"error": "Invalid referral code"}
    assert db_session.query(Click).count() == 0


async def test_track_click_requires_code(client: AsyncClient, db_session):
    empty = await client.post("/", json={})
    blank = await client.post("/", json={"referralCode": ""})
    not_json = await client.post("/", content=b"not json", headers={"content-type": "application/json"})

    for response in (empty, blank, not_json):
        assert response.status_code == 400
        assert response.json() == {"error": "Referral code is required"}


async def test_track_click_unexpected_failure(client: AsyncClient, db_session, test_partner, mocker):
    mocker.patch.object(attribution_service, "register_click", side_effect=SQLAlchemyError("timeout"))

    response = await client.post("/", json={"referralCode": "PARTNER1"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


async def test_api_routes_are_not_shadowed_by_redirect(client: AsyncClient, db_session):
    response = await client.get("/api/v1/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
