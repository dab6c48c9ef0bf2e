# spinbot/handlers/admin/router.py
from aiogram import Router

from spinbot.handlers.admin.flags import router as flags_router
from spinbot.handlers.admin.panel import router as panel_router
from spinbot.handlers.admin.reconcile import router as reconcile_router
from spinbot.handlers.admin.spinlog import router as spinlog_router
from spinbot.handlers.admin.wagers import router as wagers_router
from spinbot.handlers.admin.wallet_admin import router as wallet_admin_router

router = Router(name="admin")

router.include_router(panel_router)
router.include_router(flags_router)
router.include_router(wallet_admin_router)
router.include_router(spinlog_router)
router.include_router(reconcile_router)
router.include_router(wagers_router)
