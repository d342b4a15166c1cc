# tests/test_attribution.py

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from partnerhub.crud import click as crud_click
from partnerhub.models.click import Click, CLICK_KIND_BONUS, CLICK_KIND_DIRECT
from partnerhub.services import attribution as attribution_service
from partnerhub.services.referral import calculate_earnings


def add_direct_clicks(db, partner, count: int, ip_prefix: str = "10.0.0"):
    """Прямые клики в обход горячего пути: бонусы за них не начисляются."""
    for i in range(count):
        crud_click.create_click(
            db, partner_id=partner.id, type=CLICK_KIND_DIRECT,
            ip_address=f"{ip_prefix}.{i}", user_agent="pytest",
        )
    db.commit()


def bonus_clicks(db, upstream, downline=None):
    query = db.query(Click).filter(Click.partner_id == upstream.id, Click.type == CLICK_KIND_BONUS)
    if downline is not None:
        query = query.filter(Click.source_partner_id == downline.id)
    return query.all()


# --- Разрешение короткой ссылки ---

def test_resolve_is_stable(db_session, test_partner):
    crud_click.create_short_link(
        db_session, short_code="abc123",
        target_url="https://example.com/landing?ref=PARTNER1", partner_id=test_partner.id,
    )

    first = attribution_service.resolve(db_session, "abc123")
    second = attribution_service.resolve(db_session, "abc123")

    assert first == second
    assert first.owner_partner_id == test_partner.id
    assert first.destination_url == "https://example.com/landing?ref=PARTNER1"
    assert attribution_service.resolve(db_session, "zzz999") is None


# --- Повторные клики ---

def test_duplicate_click_is_suppressed_within_window(db_session, test_partner):
    attribution_service.record_direct_click(db_session, test_partner.id, "1.2.3.4", "pytest")

    assert attribution_service.should_suppress(db_session, test_partner.id, "1.2.3.4") is True
    # Другой адрес и другой партнер не подавляются
    assert attribution_service.should_suppress(db_session, test_partner.id, "5.6.7.8") is False


def test_click_outside_window_is_not_suppressed(db_session, test_partner):
    click = attribution_service.record_direct_click(db_session, test_partner.id, "1.2.3.4", "pytest")
    click.created_at = datetime.now(timezone.utc) - timedelta(hours=25)
    db_session.commit()

    assert attribution_service.should_suppress(db_session, test_partner.id, "1.2.3.4") is False


def test_suppressor_fails_closed(db_session, test_partner, mocker):
    mocker.patch.object(crud_click, "has_direct_click_since", side_effect=SQLAlchemyError("connection lost"))

    assert attribution_service.should_suppress(db_session, test_partner.id, "1.2.3.4") is True


async def test_register_click_twice_records_one_click(db_session, test_partner):
    first = await attribution_service.register_click(db_session, test_partner.id, "1.2.3.4", "pytest")
    second = await attribution_service.register_click(db_session, test_partner.id, "1.2.3.4", "pytest")

    assert first.suppressed is False
    assert second.suppressed is True
    assert crud_click.count_clicks(db_session, test_partner.id, type=CLICK_KIND_DIRECT) == 1


async def test_register_click_publishes_change_event(db_session, test_partner, mock_redis):
    await attribution_service.register_click(db_session, test_partner.id, "1.2.3.4", "pytest")

    mock_redis.publish.assert_awaited_once()
    channel, payload = mock_redis.publish.await_args.args
    assert '"table_name":"clicks"' in payload


# --- Бонусы ---

@pytest.mark.parametrize("direct, expected", [(0, 0), (4, 0), (5, 1), (9, 1), (10, 2), (11, 2)])
def test_expected_bonus_count_rounds_down(direct, expected):
    assert attribution_service.expected_bonus_count(direct) == expected


def test_expected_bonus_count_with_custom_percent():
    assert attribution_service.expected_bonus_count(10, percent=30) == 3
    assert attribution_service.expected_bonus_count(3, percent=30) == 0


async def test_every_fifth_click_credits_upstream(db_session, make_partner):
    upstream = make_partner(partner_code="UPSTREAM1")
    downline = make_partner(partner_code="DOWNLINE1", referred_by="UPSTREAM1")

    results = [
        await attribution_service.register_click(db_session, downline.id, f"10.1.0.{i}", "pytest")
        for i in range(1, 11)
    ]

    credited = [i for i, r in enumerate(results, start=1) if r.bonus is not None]
    assert credited == [5, 10]
    bonuses = bonus_clicks(db_session, upstream, downline)
    assert len(bonuses) == 2
    assert {b.source_click_id for b in bonuses} == {results[4].direct.id, results[9].direct.id}


async def test_dangling_referrer_is_soft_no_op(db_session, make_partner):
    orphan = make_partner(referred_by="GHOST001")
    add_direct_clicks(db_session, orphan, 4)

    result = await attribution_service.register_click(db_session, orphan.id, "9.9.9.9", "pytest")

    assert result.direct is not None
    assert result.bonus is None
    assert db_session.query(Click).filter(Click.type == CLICK_KIND_BONUS).count() == 0


def test_concurrent_bonus_for_same_click_is_not_duplicated(db_session, make_partner, mocker):
    upstream = make_partner(partner_code="UPSTREAM1")
    downline = make_partner(referred_by="UPSTREAM1")
    add_direct_clicks(db_session, downline, 10)
    fifth_click_id = crud_click.get_direct_click_ids(db_session, partner_id=downline.id)[4]
    # Параллельный запрос уже начислил бонус за 5-й клик
    crud_click.create_click(
        db_session, partner_id=upstream.id, type=CLICK_KIND_BONUS, ip_address="10.0.0.4", user_agent="pytest",
        source_partner_id=downline.id, source_click_id=fifth_click_id,
    )
    db_session.commit()
    mocker.patch.object(attribution_service, "_uncredited_milestones", return_value=[fifth_click_id])

    bonus = attribution_service.maybe_credit_upstream(db_session, downline.id)

    assert bonus is None
    assert len(bonus_clicks(db_session, upstream, downline)) == 1


async def test_bonus_failure_keeps_direct_click(db_session, make_partner, mocker):
    make_partner(partner_code="UPSTREAM1")
    downline = make_partner(referred_by="UPSTREAM1")
    mocker.patch.object(attribution_service, "maybe_credit_upstream", side_effect=SQLAlchemyError("deadlock"))

    result = await attribution_service.register_click(db_session, downline.id, "1.2.3.4", "pytest")

    assert result.direct is not None
    assert result.bonus is None
    assert crud_click.count_clicks(db_session, downline.id, type=CLICK_KIND_DIRECT) == 1


# --- Сверка ---

async def test_reconcile_backfills_floor_of_twenty_percent(db_session, make_partner):
    upstream = make_partner(partner_code="UPSTREAM1")
    downline = make_partner(partner_code="DOWNLINE1", referred_by="UPSTREAM1")
    add_direct_clicks(db_session, downline, 10)

    result = await attribution_service.reconcile(db_session, upstream.id)

    assert result.patched == 2
    bonuses = bonus_clicks(db_session, upstream, downline)
    assert len(bonuses) == 2
    assert all(b.ip_address == "127.0.0.1" for b in bonuses)
    assert all(b.user_agent == "SYSTEM_BONUS_CORRECTION" for b in bonuses)


async def test_reconcile_is_idempotent(db_session, make_partner):
    upstream = make_partner(partner_code="UPSTREAM1")
    downline = make_partner(referred_by="UPSTREAM1")
    add_direct_clicks(db_session, downline, 12)

    first = await attribution_service.reconcile(db_session, upstream.id)
    second = await attribution_service.reconcile(db_session, upstream.id)

    assert first.patched == 2
    assert second.patched == 0
    assert len(bonus_clicks(db_session, upstream)) == 2


async def test_reconcile_handles_each_sub_partner(db_session, make_partner):
    upstream = make_partner(partner_code="UPSTREAM1")
    first = make_partner(referred_by="UPSTREAM1")
    second = make_partner(referred_by="UPSTREAM1")
    outsider = make_partner()
    add_direct_clicks(db_session, first, 7, ip_prefix="10.0.1")
    add_direct_clicks(db_session, second, 15, ip_prefix="10.0.2")
    add_direct_clicks(db_session, outsider, 20, ip_prefix="10.0.3")

    result = await attribution_service.reconcile(db_session, upstream.id)

    assert result.patched == 1 + 3
    assert len(bonus_clicks(db_session, upstream, first)) == 1
    assert len(bonus_clicks(db_session, upstream, second)) == 3


async def test_reconcile_only_patches_missing_bonuses(db_session, make_partner):
    upstream = make_partner(partner_code="UPSTREAM1")
    downline = make_partner(referred_by="UPSTREAM1")
    for i in range(5):
        await attribution_service.register_click(db_session, downline.id, f"10.2.0.{i}", "pytest")
    # Еще 5 кликов без горячего пути: бонус за 10-й клик не начислен
    add_direct_clicks(db_session, downline, 5)

    result = await attribution_service.reconcile(db_session, upstream.id)

    assert result.patched == 1
    assert len(bonus_clicks(db_session, upstream, downline)) == 2


async def test_overlapping_reconcile_does_not_double_credit(db_session, make_partner, mocker):
    upstream = make_partner(partner_code="UPSTREAM1")
    downline = make_partner(referred_by="UPSTREAM1")
    add_direct_clicks(db_session, downline, 10)
    await attribution_service.reconcile(db_session, upstream.id)

    # Вторая сверка "не видит" бонусы первой, как параллельная транзакция со старым снимком
    mocker.patch.object(crud_click, "get_credited_source_click_ids", return_value=set())
    result = await attribution_service.reconcile(db_session, upstream.id)

    assert result.patched == 0
    assert len(bonus_clicks(db_session, upstream, downline)) == 2


async def test_reconcile_skips_self_referencing_partner(db_session, make_partner):
    # Старая запись, созданная до проверки referred_by на самоссылку
    partner = make_partner(partner_code="SELF0001", referred_by="SELF0001")
    downline = make_partner(referred_by="SELF0001")
    add_direct_clicks(db_session, partner, 10, ip_prefix="10.0.1")
    add_direct_clicks(db_session, downline, 5, ip_prefix="10.0.2")

    result = await attribution_service.reconcile(db_session, partner.id)

    assert result.patched == 1
    assert bonus_clicks(db_session, partner, partner) == []
    assert len(bonus_clicks(db_session, partner, downline)) == 1


async def test_reconcile_unknown_partner(db_session):
    result = await attribution_service.reconcile(db_session, 999)
    assert result.patched == 0


# --- Заработок ---

@pytest.mark.parametrize("direct, bonus, expected", [
    (0, 0, "0.00"),
    (1, 0, "0.10"),
    (3, 4, "0.70"),
    (10_000, 2_000, "1200.00"),
])
def test_earnings_are_exact(direct, bonus, expected):
    assert calculate_earnings(direct, bonus) == Decimal(expected)
