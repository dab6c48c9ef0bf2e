# spinbot/keyboards/main.py
from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

BTN_TICKETS = "🎟 Tickets"
BTN_SPIN = "🎰 Spin"
BTN_BONUS = "🎁 Bonus"
BTN_WALLET = "👛 Wallet"
BTN_LINK = "🔗 Link"


def main_menu_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=BTN_SPIN), KeyboardButton(text=BTN_TICKETS)],
            [KeyboardButton(text=BTN_BONUS), KeyboardButton(text=BTN_WALLET)],
            [KeyboardButton(text=BTN_LINK)],
        ],
        resize_keyboard=True,
        input_field_placeholder="Choose an action…",
        selective=False,
        one_time_keyboard=False,
    )
