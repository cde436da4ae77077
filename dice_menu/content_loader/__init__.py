"""
Content loading for the Dice Menu tool.

Reads the menu configuration file and validates it into an immutable
MenuStore.
"""

from dice_menu.content_loader.menu_loader import (
    MenuDataLoader,
    MenuLoadResult,
    default_menu_path,
    load_menu_data,
)

__all__ = [
    "MenuDataLoader",
    "MenuLoadResult",
    "default_menu_path",
    "load_menu_data",
]
