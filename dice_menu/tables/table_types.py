"""
Table type definitions for the Dice Menu tool.

A menu is composed by rolling one die per slot of a genre and reading the
fragment for each face from that slot's list. Genre rules and the optional
special-effect table are held in an immutable MenuStore, built once by the
loader and handed to the resolver explicitly.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union


# Reserved configuration key holding the special-effect table
SPECIAL_EFFECT_KEY = "特殊効果"

# First fragment text that triggers the special-effect expansion
SPECIAL_EFFECT_MARKER = "特殊効果つき"

# Brackets wrapped once around every composed menu
OPEN_BRACKET = "「"
CLOSE_BRACKET = "」"

# Separator between the index and the text of an expanded effect line
IDEOGRAPHIC_SPACE = "　"

# Faces of the success/failure judgement die
JUDGE_DICE_TYPE = 100


class FailureKind(str, Enum):
    """Machine-distinguishable failure kinds returned instead of raised."""
    # Fatal to the session
    CONFIGURATION_LOAD_FAILURE = "configuration_load_failure"
    CONFIGURATION_INTEGRITY_FAILURE = "configuration_integrity_failure"

    # Recoverable, the user corrects their input
    UNKNOWN_GENRE = "unknown_genre"
    ARITY_MISMATCH = "arity_mismatch"
    OUT_OF_RANGE = "out_of_range"
    MISSING_INPUT = "missing_input"
    NOT_A_NUMBER = "not_a_number"

    # Latent configuration defect surfaced at resolution time
    MALFORMED_CONFIGURATION = "malformed_configuration"

    @property
    def is_fatal(self) -> bool:
        """Whether this failure leaves the generator unusable."""
        return self in (
            FailureKind.CONFIGURATION_LOAD_FAILURE,
            FailureKind.CONFIGURATION_INTEGRITY_FAILURE,
        )


class ValidationPolicy(str, Enum):
    """How strictly list lengths are checked against the die type."""
    LENIENT = "lenient"    # referenced lists hold at least dice_type entries
    STRICT = "strict"      # every list holds exactly dice_type entries


@dataclass(frozen=True)
class JudgeRule:
    """
    Success/failure judgement rolled on a d100 alongside the menu dice.

    A judge roll at or below `threshold` succeeds. The first slot of the
    genre then reads `success_list`, otherwise `failure_list`.
    """
    threshold: int
    success_list: str
    failure_list: str
    dice_type: int = JUDGE_DICE_TYPE

    def is_success(self, value: int) -> bool:
        return value <= self.threshold


@dataclass(frozen=True)
class GenreRule:
    """
    Generation rule for one genre.

    Every slot in `parts` is rolled with the same die. The list named by
    slot i supplies the fragment for that slot, indexed by face value - 1.
    With a judge rule the first slot reads the success or failure list
    instead, and `parts[0]` only labels the slot.
    """
    name: str
    dice_type: int
    parts: tuple[str, ...]
    lists: Mapping[str, tuple[str, ...]]
    judge: Optional[JudgeRule] = None

    @property
    def dice_count(self) -> int:
        """Number of dice a roll for this genre needs."""
        return len(self.parts)

    @property
    def notation(self) -> str:
        """Dice notation for one full roll, e.g. '2d6'."""
        return f"{self.dice_count}d{self.dice_type}"

    def slot_lists(self, success: Optional[bool] = None) -> tuple[str, ...]:
        """List names read per slot, given the judgement outcome if any."""
        if self.judge is None or success is None:
            return self.parts
        first = self.judge.success_list if success else self.judge.failure_list
        return (first,) + self.parts[1:]

    @classmethod
    def build(
        cls,
        name: str,
        dice_type: int,
        parts: list[str],
        lists: dict[str, list[str]],
        judge: Optional[JudgeRule] = None,
    ) -> "GenreRule":
        """Create a rule, freezing the given sequences and mapping."""
        return cls(
            name=name,
            dice_type=dice_type,
            parts=tuple(parts),
            lists=MappingProxyType({key: tuple(values) for key, values in lists.items()}),
            judge=judge,
        )


@dataclass(frozen=True)
class SpecialEffectRule:
    """The supplementary effect table listed under a special-effect menu."""
    dice_type: int
    effects: tuple[str, ...]

    @classmethod
    def build(cls, dice_type: int, effects: list[str]) -> "SpecialEffectRule":
        return cls(dice_type=dice_type, effects=tuple(effects))


@dataclass(frozen=True)
class MenuStore:
    """
    Read-only configuration store.

    Constructed once by the loader; never mutated or reloaded afterwards.
    The reserved special-effect entry is kept apart from the genres, so it
    can never be selected as a genre.
    """
    genres: Mapping[str, GenreRule] = field(default_factory=lambda: MappingProxyType({}))
    special_effect: Optional[SpecialEffectRule] = None
    source: str = ""

    @classmethod
    def build(
        cls,
        genres: list[GenreRule],
        special_effect: Optional[SpecialEffectRule] = None,
        source: str = "",
    ) -> "MenuStore":
        """Create a store from rules, preserving their order."""
        return cls(
            genres=MappingProxyType({rule.name: rule for rule in genres}),
            special_effect=special_effect,
            source=source,
        )

    def get_genre(self, genre: str) -> Optional[GenreRule]:
        """Look up a genre rule by name."""
        if not isinstance(genre, str):
            return None
        return self.genres.get(genre)

    def genre_names(self) -> list[str]:
        """Selectable genre names in configuration order."""
        return list(self.genres.keys())

    def __contains__(self, genre: object) -> bool:
        return isinstance(genre, str) and genre in self.genres

    def __len__(self) -> int:
        return len(self.genres)


@dataclass(frozen=True)
class ResolveSuccess:
    """A composed menu ready for display or copying as-is."""
    text: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ResolveFailure:
    """
    A failure returned as data.

    Callers branch on `kind`; `message` is the rendered text to show the
    user and `details` holds the values it was rendered from.
    """
    kind: FailureKind
    message: str
    details: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def ok(self) -> bool:
        return False


ResolveResult = Union[ResolveSuccess, ResolveFailure]
