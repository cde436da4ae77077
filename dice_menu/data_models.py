"""
Core data models for the Dice Menu tool.

Holds the centralized dice interface. Every random roll made on behalf of
the user ("roll for me") goes through DiceRoller so that it can be seeded
for reproducible tests and reviewed afterwards via the roll log.
"""

import random
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


_NOTATION_RE = re.compile(r"^(?P<count>\d*)d(?P<sides>\d+)(?P<mod>[+-]\d+)?$", re.IGNORECASE)


class DiceRoller:
    """
    Centralized randomization interface.
    All dice rolls must go through this class for reproducibility and logging.
    """

    _instance = None
    _seed: Optional[int] = None
    _roll_log: list = []

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def set_seed(cls, seed: int) -> None:
        """Set random seed for reproducibility."""
        cls._seed = seed
        random.seed(seed)

    @classmethod
    def parse(cls, dice: str) -> tuple[int, int, int]:
        """
        Parse dice notation into (count, sides, modifier).

        Raises:
            ValueError: If the notation is not of the form NdS, NdS+M or NdS-M
        """
        match = _NOTATION_RE.match(dice.strip())
        if not match:
            raise ValueError(f"Invalid dice notation: {dice!r}")

        num_dice = int(match.group("count") or 1)
        die_size = int(match.group("sides"))
        modifier = int(match.group("mod") or 0)
        if num_dice < 1 or die_size < 1:
            raise ValueError(f"Invalid dice notation: {dice!r}")
        return num_dice, die_size, modifier

    @classmethod
    def roll(cls, dice: str, reason: str = "") -> "DiceResult":
        """
        Roll dice using standard notation (e.g., '2d6', '1d20+5', '3d6-2').

        Args:
            dice: Dice notation string
            reason: Why this roll is being made (for logging)

        Returns:
            DiceResult with individual rolls and total
        """
        num_dice, die_size, modifier = cls.parse(dice)

        rolls = [random.randint(1, die_size) for _ in range(num_dice)]
        total = sum(rolls) + modifier

        result = DiceResult(
            notation=dice,
            rolls=rolls,
            modifier=modifier,
            total=total,
            reason=reason
        )

        cls._roll_log.append(result)
        return result

    @classmethod
    def get_roll_log(cls) -> list:
        """Get the complete roll log for the session."""
        return cls._roll_log.copy()

    @classmethod
    def clear_roll_log(cls) -> None:
        """Clear the roll log."""
        cls._roll_log = []


@dataclass
class DiceResult:
    """Result of a dice roll with full information."""
    notation: str
    rolls: list[int]
    modifier: int
    total: int
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.notation}: {self.rolls} + {self.modifier} = {self.total}"
        elif self.modifier < 0:
            return f"{self.notation}: {self.rolls} - {abs(self.modifier)} = {self.total}"
        return f"{self.notation}: {self.rolls} = {self.total}"
