# scripts/reconcile_all.py
import asyncio
import logging
import os
import sys

# Хак для корректной работы импортов
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from partnerhub.core.logging_config import setup_logging
from partnerhub.dependencies import get_db_context
from partnerhub.models.partner import Partner
from partnerhub.services import attribution as attribution_service

logger = logging.getLogger("partnerhub.scripts.reconcile_all")


async def main():
    """
    Разовая сверка бонусов для всех партнеров, у которых есть субпартнеры.
    Безопасна для повторного запуска: уже начисленные бонусы не дублируются.
    """
    with get_db_context() as db:
        upstream_codes = {code for (code,) in db.query(Partner.referred_by).filter(Partner.referred_by.isnot(None)).distinct()}
        upstream_ids = [
            partner_id for (partner_id,) in db.query(Partner.id).filter(Partner.partner_code.in_(upstream_codes))
        ]
        logger.info(f"Reconciling bonuses for {len(upstream_ids)} partners...")

        total = 0
        for partner_id in upstream_ids:
            result = await attribution_service.reconcile(db, partner_id)
            total += result.patched

        logger.info(f"Done. Added {total} missing bonus clicks.")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
