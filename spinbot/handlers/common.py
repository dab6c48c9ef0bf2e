# spinbot/handlers/common.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

router = Router(name="common")


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(
        "📌 Available commands:\n"
        "/link &lt;username&gt;: link your account\n"
        "/tickets: tickets earned / used / left\n"
        "/spin: use one ticket\n"
        "/bonus: daily bonus status\n"
        "/bonusspin: claim the daily bonus spin\n"
        "/wallet: balance and recent wins\n"
        "/whoami: your profile + role\n\n"
        "You can also use the menu buttons."
    )
