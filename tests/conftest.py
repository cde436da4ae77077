"""
Pytest fixtures for the Dice Menu test suite.

Provides menu data, loaded stores, a clean run log, and dice fixtures.
"""

import json

import pytest

from dice_menu.content_loader import MenuDataLoader
from dice_menu.data_models import DiceRoller
from dice_menu.observability import reset_run_log
from dice_menu.tables import SPECIAL_EFFECT_KEY, SPECIAL_EFFECT_MARKER


# =============================================================================
# DICE FIXTURES
# =============================================================================


@pytest.fixture
def seeded_dice():
    """Provide a seeded DiceRoller for reproducible tests."""
    DiceRoller.clear_roll_log()
    DiceRoller.set_seed(42)
    yield DiceRoller()
    DiceRoller.clear_roll_log()


@pytest.fixture
def clean_dice():
    """Provide a clean DiceRoller without seed."""
    DiceRoller.clear_roll_log()
    yield DiceRoller()
    DiceRoller.clear_roll_log()


# =============================================================================
# RUN LOG FIXTURES
# =============================================================================


@pytest.fixture
def run_log():
    """A freshly reset global run log."""
    log = reset_run_log()
    yield log
    log.reset()


# =============================================================================
# MENU DATA FIXTURES
# =============================================================================


@pytest.fixture
def food_data():
    """The Food genre: 2d6, adjective + noun."""
    return {
        "Food": {
            "diceType": 6,
            "parts": ["adj", "noun"],
            "lists": {
                "adj": ["Spicy", "Sweet", "Sour", "Bitter", "Salty", "Umami"],
                "noun": ["Ramen", "Soup", "Rice", "Noodle", "Stew", "Curry"],
            },
        }
    }


@pytest.fixture
def special_data(food_data):
    """Food plus a genre whose first slot can carry a special effect."""
    data = dict(food_data)
    data["Drink"] = {
        "diceType": 3,
        "parts": ["temp", "drink"],
        "lists": {
            "temp": [SPECIAL_EFFECT_MARKER, "Hot", "Iced"],
            "drink": ["Tea", "Coffee", "Milk"],
        },
    }
    data[SPECIAL_EFFECT_KEY] = {"diceType": 3, "lists": ["E1", "E2", "E3"]}
    return data


@pytest.fixture
def food_store(food_data):
    """Loaded store holding only the Food genre."""
    result = MenuDataLoader().load_data(food_data)
    assert result.success, result.errors
    return result.store


@pytest.fixture
def special_store(special_data):
    """Loaded store with Food, Drink and the special-effect table."""
    result = MenuDataLoader().load_data(special_data)
    assert result.success, result.errors
    return result.store


@pytest.fixture
def menu_file(tmp_path, special_data):
    """special_data written to a JSON file."""
    path = tmp_path / "menu_data.json"
    path.write_text(json.dumps(special_data, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def judge_data(food_data):
    """Food plus a Hope genre whose first slot depends on a d100 judgement."""
    data = dict(food_data)
    data["Hope"] = {
        "diceType": 3,
        "parts": ["main", "side"],
        "judge": {"successThreshold": 50, "success": "win", "failure": "lose"},
        "lists": {
            "win": ["Feast", "Banquet", SPECIAL_EFFECT_MARKER],
            "lose": ["Crumbs", "Leftovers", "Nothing"],
            "side": ["Salad", "Bread", "Soup"],
        },
    }
    data[SPECIAL_EFFECT_KEY] = {"diceType": 3, "lists": ["E1", "E2", "E3"]}
    return data


@pytest.fixture
def judge_store(judge_data):
    """Loaded store with Food, the judged Hope genre and special effects."""
    result = MenuDataLoader().load_data(judge_data)
    assert result.success, result.errors
    return result.store
