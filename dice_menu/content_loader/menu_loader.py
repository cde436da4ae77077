"""Menu Data Loader for the Dice Menu tool.

Loads the menu configuration from a JSON file (default: the bundled
`dice_menu/data/menu_data.json`, shipped as package data).

File shape:
    {
      "Food": {
        "diceType": 6,
        "parts": ["adj", "noun"],
        "lists": {"adj": [...6 entries...], "noun": [...6 entries...]}
      },
      "特殊効果": {"diceType": 3, "lists": ["E1", "E2", "E3"]}
    }

The reserved "特殊効果" entry is optional and holds a flat list. The keys
`dice_type` and `リスト` are accepted in place of `diceType` and `lists`.

A genre may add a d100 judgement that picks the first slot's list:
    "judge": {"successThreshold": 50, "success": "win", "failure": "lose"}
Both named lists must exist; `parts[0]` then only labels the slot.

This module intentionally focuses on:
- reading the file
- validating shape and list lengths under a ValidationPolicy
- freezing the result into a MenuStore

Every problem found is collected, so one load reports all of them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dice_menu.tables.table_types import (
    JUDGE_DICE_TYPE,
    SPECIAL_EFFECT_KEY,
    FailureKind,
    GenreRule,
    JudgeRule,
    MenuStore,
    SpecialEffectRule,
    ValidationPolicy,
)

logger = logging.getLogger(__name__)

DICE_TYPE_KEYS = ("diceType", "dice_type")
LISTS_KEYS = ("lists", "リスト")
JUDGE_KEYS = ("judge", "成否判定")
THRESHOLD_KEYS = ("successThreshold", "success_threshold")


# =============================================================================
# RESULT DATACLASSES
# =============================================================================

@dataclass
class MenuLoadResult:
    source: str
    success: bool = False
    store: Optional[MenuStore] = None
    kind: Optional[FailureKind] = None
    genres_loaded: int = 0
    special_effect_loaded: bool = False
    errors: list[str] = field(default_factory=list)


# =============================================================================
# LOADER
# =============================================================================

class MenuDataLoader:
    """Loads and validates menu configuration into a MenuStore."""

    def __init__(self, policy: ValidationPolicy = ValidationPolicy.LENIENT):
        self.policy = policy

    def load_file(self, file_path: Path) -> MenuLoadResult:
        source = str(file_path)
        try:
            text = Path(file_path).read_text(encoding="utf-8")
        except OSError as e:
            return self._load_failure(source, f"Failed to read file: {e}")
        return self.load_text(text, source=source)

    def load_text(self, text: str, source: str = "<string>") -> MenuLoadResult:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            return self._load_failure(source, f"Failed to read JSON: {e}")
        return self.load_data(raw, source=source)

    def load_data(self, raw: Any, source: str = "<data>") -> MenuLoadResult:
        result = MenuLoadResult(source=source)

        if not isinstance(raw, dict):
            result.errors.append("Top-level value is not an object")
            return self._finish(result, genres=[], special=None)

        genres: list[GenreRule] = []
        special: Optional[SpecialEffectRule] = None

        for name, obj in raw.items():
            if name == SPECIAL_EFFECT_KEY:
                special = self._parse_special_effect(obj, result.errors)
                continue
            rule = self._parse_genre(str(name), obj, result.errors)
            if rule is not None:
                genres.append(rule)

        if not any(name != SPECIAL_EFFECT_KEY for name in raw):
            result.errors.append(f"No genres defined besides '{SPECIAL_EFFECT_KEY}'")

        return self._finish(result, genres=genres, special=special)

    # ----- parsing helpers -----

    def _finish(
        self,
        result: MenuLoadResult,
        genres: list[GenreRule],
        special: Optional[SpecialEffectRule],
    ) -> MenuLoadResult:
        if result.errors:
            result.kind = FailureKind.CONFIGURATION_INTEGRITY_FAILURE
            for err in result.errors:
                logger.warning(f"Menu data error in {result.source}: {err}")
            return result

        result.store = MenuStore.build(genres, special_effect=special, source=result.source)
        result.genres_loaded = len(genres)
        result.special_effect_loaded = special is not None
        result.success = True
        logger.info(
            f"Loaded {result.genres_loaded} genres from {result.source}"
            f" (special effects: {'yes' if special else 'no'}, policy: {self.policy.value})"
        )
        return result

    def _load_failure(self, source: str, error: str) -> MenuLoadResult:
        logger.error(f"Menu data could not be loaded from {source}: {error}")
        return MenuLoadResult(
            source=source,
            kind=FailureKind.CONFIGURATION_LOAD_FAILURE,
            errors=[error],
        )

    def _parse_dice_type(self, label: str, obj: dict[str, Any], errors: list[str]) -> Optional[int]:
        dice_type = _first_present(obj, DICE_TYPE_KEYS)
        if isinstance(dice_type, bool) or not isinstance(dice_type, int) or dice_type < 1:
            errors.append(f"{label}: diceType must be a positive integer, got {dice_type!r}")
            return None
        return dice_type

    def _parse_genre(self, name: str, obj: Any, errors: list[str]) -> Optional[GenreRule]:
        label = f"Genre '{name}'"
        if not isinstance(obj, dict):
            errors.append(f"{label}: entry is not an object")
            return None

        start = len(errors)
        dice_type = self._parse_dice_type(label, obj, errors)

        parts = obj.get("parts")
        if not isinstance(parts, list) or not parts:
            errors.append(f"{label}: parts must be a non-empty list")
            parts = []
        elif not all(isinstance(p, str) for p in parts):
            errors.append(f"{label}: parts must only name lists")
            parts = []

        lists = _first_present(obj, LISTS_KEYS)
        if not isinstance(lists, dict):
            errors.append(f"{label}: lists must be an object of list-name to entries")
            lists = {}

        for list_name, entries in lists.items():
            if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
                errors.append(f"{label}: list '{list_name}' must be a list of strings")

        judge = None
        referenced = list(parts)
        judge_obj = _first_present(obj, JUDGE_KEYS)
        if judge_obj is not None:
            judge = self._parse_judge(label, judge_obj, errors)
            if judge is not None and parts:
                referenced = [judge.success_list, judge.failure_list] + parts[1:]

        for list_name in referenced:
            if list_name not in lists:
                errors.append(f"{label}: part '{list_name}' has no list")

        if dice_type is not None:
            self._check_lengths(label, dice_type, referenced, lists, errors)

        if len(errors) > start:
            return None
        return GenreRule.build(
            name=name, dice_type=dice_type, parts=parts, lists=lists, judge=judge
        )

    def _parse_judge(self, label: str, obj: Any, errors: list[str]) -> Optional[JudgeRule]:
        if not isinstance(obj, dict):
            errors.append(f"{label}: judge must be an object")
            return None

        start = len(errors)
        threshold = _first_present(obj, THRESHOLD_KEYS)
        if (
            isinstance(threshold, bool)
            or not isinstance(threshold, int)
            or not 0 <= threshold <= JUDGE_DICE_TYPE
        ):
            errors.append(
                f"{label}: judge successThreshold must be an integer from 0 to "
                f"{JUDGE_DICE_TYPE}, got {threshold!r}"
            )

        names = {}
        for key in ("success", "failure"):
            list_name = obj.get(key)
            if not isinstance(list_name, str) or not list_name:
                errors.append(f"{label}: judge {key} must name a list")
            names[key] = list_name

        if len(errors) > start:
            return None
        return JudgeRule(
            threshold=threshold,
            success_list=names["success"],
            failure_list=names["failure"],
        )

    def _check_lengths(
        self,
        label: str,
        dice_type: int,
        parts: list[str],
        lists: dict[str, Any],
        errors: list[str],
    ) -> None:
        if self.policy == ValidationPolicy.STRICT:
            checked = list(lists)
        else:
            checked = list(dict.fromkeys(p for p in parts if p in lists))

        for list_name in checked:
            entries = lists[list_name]
            if not isinstance(entries, list):
                continue
            if self.policy == ValidationPolicy.STRICT and len(entries) != dice_type:
                errors.append(
                    f"{label}: list '{list_name}' has {len(entries)} entries, "
                    f"diceType {dice_type} requires exactly {dice_type}"
                )
            elif len(entries) < dice_type:
                errors.append(
                    f"{label}: list '{list_name}' has {len(entries)} entries, "
                    f"diceType {dice_type} requires at least {dice_type}"
                )

    def _parse_special_effect(self, obj: Any, errors: list[str]) -> Optional[SpecialEffectRule]:
        label = f"'{SPECIAL_EFFECT_KEY}'"
        if not isinstance(obj, dict):
            errors.append(f"{label}: entry is not an object")
            return None

        start = len(errors)
        dice_type = self._parse_dice_type(label, obj, errors)

        effects = _first_present(obj, LISTS_KEYS)
        if not isinstance(effects, list) or not effects:
            errors.append(f"{label}: lists must be a non-empty flat list")
            effects = []
        elif not all(isinstance(e, str) for e in effects):
            errors.append(f"{label}: lists must only hold strings")

        if (
            dice_type is not None
            and effects
            and self.policy == ValidationPolicy.STRICT
            and len(effects) != dice_type
        ):
            errors.append(
                f"{label}: lists has {len(effects)} entries, "
                f"diceType {dice_type} requires exactly {dice_type}"
            )

        if len(errors) > start:
            return None
        return SpecialEffectRule.build(dice_type=dice_type, effects=effects)


def _first_present(obj: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in obj:
            return obj[key]
    return None


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def default_menu_path() -> Path:
    """Path of the bundled menu data file."""
    return Path(__file__).resolve().parent.parent / "data" / "menu_data.json"


def load_menu_data(
    menu_file: Optional[Path] = None,
    policy: ValidationPolicy = ValidationPolicy.LENIENT,
) -> MenuLoadResult:
    """Load the menu data file, defaulting to the bundled one."""
    if menu_file is None:
        menu_file = default_menu_path()

    loader = MenuDataLoader(policy=policy)
    return loader.load_file(menu_file)
