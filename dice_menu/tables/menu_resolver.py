"""
Menu resolution for the Dice Menu tool.

Maps a genre plus one die result per slot to the composed menu text. Genres
with a judge rule also take a d100 judgement roll that picks the success or
failure list for the first slot. All problems come back as ResolveFailure
values; resolve() never raises.

Usage:
    from dice_menu.tables.menu_resolver import resolve

    result = resolve(store, "Food", [2, 5])
    if result.ok:
        print(result.text)          # 「Sweet Stew」
    else:
        print(result.kind, result.message)
"""

import logging
import re
from types import MappingProxyType
from typing import Any, Optional, Sequence, Union

from dice_menu.tables.messages import DEFAULT_MESSAGES, MessageTable
from dice_menu.tables.table_types import (
    CLOSE_BRACKET,
    IDEOGRAPHIC_SPACE,
    OPEN_BRACKET,
    SPECIAL_EFFECT_MARKER,
    FailureKind,
    GenreRule,
    MenuStore,
    ResolveFailure,
    ResolveResult,
    ResolveSuccess,
    SpecialEffectRule,
)

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"^[+-]?[0-9]+$")


def failure(
    kind: FailureKind,
    messages: Optional[MessageTable] = None,
    **details: Any,
) -> ResolveFailure:
    """Build a ResolveFailure with its message rendered from the table."""
    messages = messages or DEFAULT_MESSAGES
    return ResolveFailure(
        kind=kind,
        message=messages.render(kind, **details),
        details=MappingProxyType(dict(details)),
    )


def wrap(text: str) -> str:
    """Wrap composed menu text in the display brackets."""
    return f"{OPEN_BRACKET}{text}{CLOSE_BRACKET}"


def format_special_effects(full_text: str, special: SpecialEffectRule) -> str:
    """
    Build the expansion block listed under a special-effect menu.

    The first line restates the menu, followed by a blank line, the die to
    roll for the effect, and one numbered line per effect.
    """
    lines = [wrap(full_text), "", f"dice1d{special.dice_type}="]
    lines.extend(
        f"{index}{IDEOGRAPHIC_SPACE}{effect}"
        for index, effect in enumerate(special.effects, start=1)
    )
    return "\n".join(lines)


def _is_die_value(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _lookup_fragments(
    rule: GenreRule,
    list_names: Sequence[str],
    dice_results: Sequence[int],
) -> Optional[list[str]]:
    """Read one fragment per slot, or None if the rule cannot supply one."""
    fragments = []
    for list_name, value in zip(list_names, dice_results):
        options = rule.lists.get(list_name)
        if options is None:
            logger.error(f"Genre '{rule.name}' references missing list '{list_name}'")
            return None
        index = value - 1
        if not 0 <= index < len(options):
            logger.error(
                f"Genre '{rule.name}' list '{list_name}' has {len(options)} entries, "
                f"no entry for roll {value}"
            )
            return None
        fragment = options[index]
        if not isinstance(fragment, str):
            logger.error(
                f"Genre '{rule.name}' list '{list_name}' entry {value} is not text: {fragment!r}"
            )
            return None
        fragments.append(fragment)
    return fragments


def format_judge_header(
    menu_text: str,
    judge: int,
    success: bool,
    messages: Optional[MessageTable] = None,
) -> str:
    """Prefix a composed menu with the judgement roll and its outcome."""
    messages = messages or DEFAULT_MESSAGES
    outcome = messages.render("judge_success" if success else "judge_failure")
    header = messages.render("judge_header", judge=judge, outcome=outcome)
    return f"{header}\n{messages.render('judge_menu', menu=menu_text)}"


def resolve(
    store: MenuStore,
    genre: str,
    dice_results: Sequence[int],
    messages: Optional[MessageTable] = None,
    judge: Optional[int] = None,
    show_judge: bool = False,
) -> ResolveResult:
    """
    Resolve a genre and its dice results into the composed menu.

    Args:
        store: Loaded configuration store
        genre: Genre name; the reserved special-effect key is not a genre
        dice_results: One die result per slot of the genre, in slot order
        messages: Template table for failure messages
        judge: d100 judgement roll. Required by genres with a judge rule,
            ignored by the others
        show_judge: Prefix the menu with the judgement line

    Returns:
        ResolveSuccess with the display text, or ResolveFailure. Only the
        first out-of-range value is reported.
    """
    messages = messages or DEFAULT_MESSAGES

    rule = store.get_genre(genre)
    if rule is None:
        return failure(FailureKind.UNKNOWN_GENRE, messages, genre=genre)

    try:
        dice_results = list(dice_results)
    except TypeError:
        logger.debug(f"Dice results for '{genre}' are not iterable: {dice_results!r}")
        dice_results = None
    if dice_results is None or len(dice_results) != len(rule.parts):
        return failure(
            FailureKind.ARITY_MISMATCH,
            messages,
            genre=genre,
            expected=len(rule.parts),
            actual=len(dice_results) if dice_results is not None else 0,
        )

    success = None
    if rule.judge is not None:
        if judge is None:
            return failure(FailureKind.MISSING_INPUT, messages, count=rule.dice_count + 1)
        if not _is_die_value(judge) or not 1 <= judge <= rule.judge.dice_type:
            return failure(
                FailureKind.OUT_OF_RANGE,
                messages,
                genre=genre,
                value=judge,
                dice_type=rule.judge.dice_type,
            )
        success = rule.judge.is_success(judge)

    for value in dice_results:
        if not _is_die_value(value) or not 1 <= value <= rule.dice_type:
            return failure(
                FailureKind.OUT_OF_RANGE,
                messages,
                genre=genre,
                value=value,
                dice_type=rule.dice_type,
            )

    try:
        fragments = _lookup_fragments(rule, rule.slot_lists(success), dice_results)
        if fragments is None:
            return failure(FailureKind.MALFORMED_CONFIGURATION, messages, genre=genre)

        full_text = " ".join(fragments)
        if fragments and fragments[0] == SPECIAL_EFFECT_MARKER:
            if store.special_effect is None:
                logger.debug(f"No special effect table, skipping expansion for '{genre}'")
                text = wrap(full_text)
            else:
                text = format_special_effects(full_text, store.special_effect)
        else:
            text = wrap(full_text)

        if show_judge and success is not None:
            text = format_judge_header(text, judge, success, messages)
        return ResolveSuccess(text=text)
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        logger.error(f"Malformed configuration while resolving '{genre}': {e}", exc_info=True)
        return failure(FailureKind.MALFORMED_CONFIGURATION, messages, genre=genre)


def parse_dice_inputs(
    raw_values: Sequence[Union[str, int, None]],
    messages: Optional[MessageTable] = None,
) -> Union[list[int], ResolveFailure]:
    """
    Parse raw dice inputs as typed into a form or on a command line.

    Blank entries are reported before malformed ones. Only ASCII digits
    count as numbers. Range checks are left to resolve().

    Returns:
        The parsed integers in order, or a MISSING_INPUT / NOT_A_NUMBER failure
    """
    messages = messages or DEFAULT_MESSAGES
    count = len(raw_values)

    texts = []
    for raw in raw_values:
        text = "" if raw is None else str(raw).strip()
        if not text:
            return failure(FailureKind.MISSING_INPUT, messages, count=count)
        texts.append(text)

    values = []
    for text in texts:
        if not _INTEGER_RE.match(text):
            return failure(FailureKind.NOT_A_NUMBER, messages, value=text)
        values.append(int(text))
    return values
