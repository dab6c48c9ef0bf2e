# spinbot/keyboards/admin.py
from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

BTN_SPIN_LOG = "📜 Spin Log"
BTN_WAGERS = "📈 Wager Data"
BTN_BACK = "⬅️ Back to Menu"


def admin_panel_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=BTN_SPIN_LOG), KeyboardButton(text=BTN_WAGERS)],
            [KeyboardButton(text=BTN_BACK)],
        ],
        resize_keyboard=True,
        input_field_placeholder="Admin panel…",
        selective=False,
        one_time_keyboard=False,
    )
