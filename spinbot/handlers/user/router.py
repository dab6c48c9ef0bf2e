# spinbot/handlers/user/router.py
from aiogram import Router

from spinbot.handlers.user.bonus import router as bonus_router
from spinbot.handlers.user.link import router as link_router
from spinbot.handlers.user.spin import router as spin_router
from spinbot.handlers.user.start import router as start_router
from spinbot.handlers.user.tickets import router as tickets_router
from spinbot.handlers.user.wallet import router as wallet_router
from spinbot.handlers.user.whoami import router as whoami_router

router = Router(name="user")

router.include_router(start_router)
router.include_router(whoami_router)
router.include_router(link_router)
router.include_router(tickets_router)
router.include_router(spin_router)
router.include_router(bonus_router)
router.include_router(wallet_router)
