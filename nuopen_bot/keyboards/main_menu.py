"""
Main menu keyboards: one register entry per deployed form.
"""
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from nuopen_bot.keyboards.callbacks import MainMenuCb, ModeCb
from nuopen_bot.schema import Mode


def main_menu(modes: list[str]) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for mode in modes:
        builder.row(
            InlineKeyboardButton(
                text=f"📝 Register ({Mode.LABELS[mode].lower()})",
                callback_data=ModeCb(mode=mode).pack(),
            )
        )
    builder.row(
        InlineKeyboardButton(text="🏆 Accepted teams", callback_data=MainMenuCb(action="teams").pack()),
    )
    return builder.as_markup()


def back_to_main() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(InlineKeyboardButton(text="🔙 Main menu", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()
