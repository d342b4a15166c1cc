# scripts/create_admin.py
import logging
import os
import sys

# Хак для корректной работы импортов
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from partnerhub.core.logging_config import setup_logging
from partnerhub.crud import partner as crud_partner
from partnerhub.dependencies import get_db_context

logger = logging.getLogger("partnerhub.scripts.create_admin")


def main(identifier: str) -> int:
    """
    Выдает права администратора существующему партнеру (по email или username).
    Первого администратора иначе не назначить: API для этого требует прав админа.
    """
    with get_db_context() as db:
        partner = crud_partner.get_partner_by_email(db, identifier) or crud_partner.get_partner_by_username(db, identifier)
        if not partner:
            logger.error(f"Partner '{identifier}' not found.")
            return 1
        if partner.is_admin:
            logger.info(f"Partner {partner.id} ({partner.username}) is already an admin.")
            return 0
        partner.is_admin = True
        db.commit()
        logger.info(f"Partner {partner.id} ({partner.username}) is now an admin.")
    return 0


if __name__ == "__main__":
    setup_logging()
    if len(sys.argv) != 2:
        print("Usage: python scripts/create_admin.py <email-or-username>")
        sys.exit(2)
    sys.exit(main(sys.argv[1]))
