"""UI string table for the console, keyed by language and string id."""

from __future__ import annotations

from .types import SUPPORTED_LANGUAGES

STRINGS: dict[str, dict[str, str]] = {
    "en": {
        "insert_coin": "INSERT COIN",
        "enter_dialogue": "PLEASE ENTER DIALOGUE BELOW",
        "controls": "CONTROLS",
        "generate": "START",
        "reset": "RESET",
        "game_style": "GAME STYLE",
        "dialogue": "DIALOGUE",
        "reading_cartridge": "READING CARTRIDGE...",
        "rendering_graphics": "RENDERING GRAPHICS...",
        "system_error": "SYSTEM ERROR",
        "reset_system": "RESET SYSTEM",
        "save": "SAVE",
        "hide_text": "HIDE TEXT",
        "show_text": "SHOW TEXT",
        "HORIZONTAL": "Horizontal Text",
        "HORIZONTAL_NO_BG": "Horizontal (No BG)",
        "VERTICAL_LEFT": "Vertical Text",
        "VERTICAL_LEFT_NO_BG": "Vertical (No BG)",
        "daily_limit_reached": "DAILY LIMIT REACHED ({used}/{limit})",
        "remaining_credits": "CREDITS:",
    },
    "zh": {
        "insert_coin": "投入代币",
        "enter_dialogue": "请在下方输入对话",
        "controls": "操作说明",
        "generate": "生成",
        "reset": "重置",
        "game_style": "游戏风格",
        "dialogue": "剧情文本",
        "reading_cartridge": "读取卡带中...",
        "rendering_graphics": "渲染画面中...",
        "system_error": "系统错误",
        "reset_system": "重启系统",
        "save": "保存截图",
        "hide_text": "隐藏字幕",
        "show_text": "显示字幕",
        "HORIZONTAL": "横向字幕",
        "HORIZONTAL_NO_BG": "横向字幕 (无背景)",
        "VERTICAL_LEFT": "竖向字幕",
        "VERTICAL_LEFT_NO_BG": "竖向字幕 (无背景)",
        "daily_limit_reached": "今日次数已用完 ({used}/{limit})",
        "remaining_credits": "剩余次数:",
    },
}


def check_language(language: str) -> str:
    """Return *language* unchanged, or raise if it has no string table."""
    if language not in SUPPORTED_LANGUAGES:
        allowed = ", ".join(SUPPORTED_LANGUAGES)
        raise ValueError(f"Unsupported language '{language}'. Allowed: {allowed}")
    return language


def t(language: str, key: str, **params: object) -> str:
    """Look up string *key* for *language*, formatting any ``{placeholders}``."""
    text = STRINGS[check_language(language)][key]
    return text.format(**params) if params else text
