# partnerhub/routers/admin/__init__.py

from fastapi import APIRouter, Depends

from partnerhub.dependencies import get_admin_partner

from . import (
    users,
    withdrawals,
    projects,
    messages,
)

# Зависимость на уровне роутера: все эндпоинты раздела доступны только администраторам
router = APIRouter(
    tags=["Admin"],
    dependencies=[Depends(get_admin_partner)]
)

# /admin/users, /admin/users/{id}/admin
router.include_router(users.router, prefix="/users")

# /admin/withdrawals, /admin/withdrawals/{id}
router.include_router(withdrawals.router, prefix="/withdrawals")

# /admin/projects/..., /admin/assignments/{id}/review
router.include_router(projects.router)

# /admin/messages/broadcast, /admin/messages/{partner_id}
router.include_router(messages.router, prefix="/messages")
