"""
Menu tables and resolution for the Dice Menu tool.

This module provides:
- The immutable configuration store and its rule types
- Menu resolution with the special-effect expansion
- The optional d100 success/failure judgement
- Raw dice input parsing
- Injectable message tables for user-facing text
"""

from dice_menu.tables.table_types import (
    # Constants
    SPECIAL_EFFECT_KEY,
    SPECIAL_EFFECT_MARKER,
    JUDGE_DICE_TYPE,
    # Enums
    FailureKind,
    ValidationPolicy,
    # Data classes
    GenreRule,
    JudgeRule,
    SpecialEffectRule,
    MenuStore,
    ResolveSuccess,
    ResolveFailure,
    ResolveResult,
)

from dice_menu.tables.messages import (
    MessageTable,
    DEFAULT_MESSAGES,
    PLAIN_MESSAGES,
    available_message_tables,
    get_message_table,
)

from dice_menu.tables.menu_resolver import (
    resolve,
    parse_dice_inputs,
    format_special_effects,
    format_judge_header,
)


__all__ = [
    # Constants
    "SPECIAL_EFFECT_KEY",
    "SPECIAL_EFFECT_MARKER",
    "JUDGE_DICE_TYPE",
    # Enums
    "FailureKind",
    "ValidationPolicy",
    # Data classes
    "GenreRule",
    "JudgeRule",
    "SpecialEffectRule",
    "MenuStore",
    "ResolveSuccess",
    "ResolveFailure",
    "ResolveResult",
    # Messages
    "MessageTable",
    "DEFAULT_MESSAGES",
    "PLAIN_MESSAGES",
    "available_message_tables",
    "get_message_table",
    # Resolution
    "resolve",
    "parse_dice_inputs",
    "format_special_effects",
    "format_judge_header",
]
