"""
Dice Menu - Main Entry Point

Compose a menu from dice rolls: pick a genre, supply one die result per
slot (or let the tool roll them), and get back the composed text.

This module provides the main entry point and the MenuGenerator class that
ties the loaded menu data, the resolver and the run log together.
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from dice_menu.content_loader import MenuLoadResult, load_menu_data
from dice_menu.data_models import DiceRoller
from dice_menu.observability import RunLog, get_run_log
from dice_menu.tables import (
    DEFAULT_MESSAGES,
    JUDGE_DICE_TYPE,
    FailureKind,
    MenuStore,
    MessageTable,
    ResolveFailure,
    ResolveResult,
    ValidationPolicy,
    available_message_tables,
    get_message_table,
    parse_dice_inputs,
    resolve,
)
from dice_menu.tables.menu_resolver import failure


# Configure logging
def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RESOLUTION_FAILED = 1
EXIT_CONFIGURATION_FAILED = 2


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class MenuConfig:
    """Configuration for a menu session."""

    menu_file: Optional[Path] = None  # None = bundled dice_menu/data/menu_data.json
    policy: ValidationPolicy = ValidationPolicy.LENIENT
    messages: str = "default"  # default, plain

    # Rolling
    seed: Optional[int] = None

    # Runtime options
    verbose: bool = False

    def __post_init__(self):
        """Coerce string values from the command line."""
        if isinstance(self.menu_file, str):
            self.menu_file = Path(self.menu_file)
        if isinstance(self.policy, str):
            self.policy = ValidationPolicy(self.policy)


# =============================================================================
# MENU GENERATOR
# =============================================================================

class MenuGenerator:
    """
    Front-end facing menu generation.

    Holds the store loaded once at startup. If loading failed the generator
    stays unusable: every generation call returns the fixed load diagnostic.
    """

    def __init__(
        self,
        load_result: Optional[MenuLoadResult] = None,
        messages: MessageTable = DEFAULT_MESSAGES,
        run_log: Optional[RunLog] = None,
    ):
        self.load_result = load_result
        self.messages = messages
        self.run_log = run_log or get_run_log()

    @classmethod
    def from_config(cls, config: MenuConfig, run_log: Optional[RunLog] = None) -> "MenuGenerator":
        """Load the menu data named by the config and build a generator."""
        messages = get_message_table(config.messages)
        run_log = run_log or get_run_log()

        if config.seed is not None:
            DiceRoller.set_seed(config.seed)
            run_log.set_seed(config.seed)

        load_result = load_menu_data(config.menu_file, policy=config.policy)
        run_log.log_config_load(
            source=load_result.source,
            success=load_result.success,
            genres_loaded=load_result.genres_loaded,
            failure_kind=load_result.kind.value if load_result.kind else None,
            errors=load_result.errors,
        )
        return cls(load_result, messages=messages, run_log=run_log)

    @property
    def is_ready(self) -> bool:
        return self.load_result is not None and self.load_result.success

    @property
    def store(self) -> Optional[MenuStore]:
        return self.load_result.store if self.is_ready else None

    @property
    def genres(self) -> list[str]:
        """Selectable genres; empty when the menu data is unusable."""
        return self.store.genre_names() if self.store else []

    def unavailable(self) -> ResolveFailure:
        """The fixed diagnostic returned while the menu data is unusable."""
        if self.load_result is None:
            return ResolveFailure(
                kind=FailureKind.CONFIGURATION_LOAD_FAILURE,
                message=self.messages.render("not_loaded"),
            )
        kind = self.load_result.kind or FailureKind.CONFIGURATION_LOAD_FAILURE
        return failure(kind, self.messages, errors=len(self.load_result.errors))

    def dice_requirement(self, genre: str) -> Optional[tuple[int, int]]:
        """(number of dice, faces per die) for a genre, or None if unknown."""
        rule = self.store.get_genre(genre) if self.store else None
        if rule is None:
            return None
        return rule.dice_count, rule.dice_type

    def needs_judge(self, genre: str) -> bool:
        """Whether the genre takes a d100 judgement roll."""
        rule = self.store.get_genre(genre) if self.store else None
        return rule is not None and rule.judge is not None

    def generate(
        self,
        genre: str,
        dice_results: Sequence[int],
        judge: Optional[int] = None,
        show_judge: bool = False,
    ) -> ResolveResult:
        """Resolve a genre with already-parsed dice results."""
        if not self.is_ready:
            return self.unavailable()

        result = resolve(
            self.store, genre, dice_results, self.messages, judge=judge, show_judge=show_judge
        )
        self._record(genre, dice_results, result, judge=judge)
        return result

    def generate_from_inputs(
        self,
        genre: str,
        raw_values: Sequence[Union[str, int, None]],
        raw_judge: Union[str, int, None] = None,
        show_judge: bool = False,
    ) -> ResolveResult:
        """
        Parse raw inputs as typed by the user, then resolve them.

        For a judged genre the judgement roll is checked together with the
        menu dice, so a blank judge counts towards the missing inputs.
        """
        if not self.is_ready:
            return self.unavailable()

        judged = self.needs_judge(genre)
        raw = [raw_judge, *raw_values] if judged else list(raw_values)
        parsed = parse_dice_inputs(raw, self.messages)
        if isinstance(parsed, ResolveFailure):
            self._record(genre, list(raw_values), parsed)
            return parsed
        if judged:
            return self.generate(genre, parsed[1:], judge=parsed[0], show_judge=show_judge)
        return self.generate(genre, parsed)

    def roll_dice(self, genre: str) -> Optional[list[int]]:
        """Roll one die per slot of the genre; None if the genre is unknown."""
        requirement = self.dice_requirement(genre)
        if requirement is None:
            return None
        count, dice_type = requirement
        return self._roll(f"{count}d{dice_type}", f"{genre} menu", genre)

    def roll_judge(self, genre: str) -> Optional[int]:
        """Roll the d100 judgement for a judged genre; None for the others."""
        if not self.needs_judge(genre):
            return None
        return self._roll(f"1d{JUDGE_DICE_TYPE}", f"{genre} judgement", genre)[0]

    def roll_and_generate(self, genre: str) -> tuple[list[int], ResolveResult]:
        """
        Roll for the genre and resolve the rolled values.

        A judged genre also gets its judgement rolled, and the judgement
        line is always shown so the rolled outcome is visible.
        """
        if not self.is_ready:
            return [], self.unavailable()

        rolls = self.roll_dice(genre)
        if rolls is None:
            return [], self.generate(genre, [])
        judge = self.roll_judge(genre)
        return rolls, self.generate(genre, rolls, judge=judge, show_judge=judge is not None)

    def _roll(self, notation: str, reason: str, genre: str) -> list[int]:
        result = DiceRoller.roll(notation, reason)
        self.run_log.log_roll(
            notation=result.notation,
            rolls=result.rolls,
            total=result.total,
            reason=result.reason,
            context={"genre": genre},
        )
        return list(result.rolls)

    def _record(
        self,
        genre: str,
        dice_results: Sequence,
        result: ResolveResult,
        judge: Optional[int] = None,
    ) -> None:
        try:
            dice_results = list(dice_results)
        except TypeError:
            dice_results = []
        if result.ok:
            self.run_log.log_resolution(
                genre, dice_results, success=True, result_text=result.text, judge=judge
            )
            return
        if result.kind == FailureKind.MALFORMED_CONFIGURATION:
            logger.error(f"Menu data defect for genre '{genre}' with dice {dice_results}")
        else:
            logger.debug(f"Resolution failed for '{genre}' {dice_results}: {result.kind.value}")
        self.run_log.log_resolution(
            genre, dice_results, success=False, failure_kind=result.kind.value, judge=judge
        )


# =============================================================================
# INTERACTIVE CLI
# =============================================================================

class MenuCLI:
    """Interactive command-line interface for menu generation."""

    def __init__(self, generator: MenuGenerator):
        self.generator = generator
        self.running = False
        self.genre: Optional[str] = generator.genres[0] if generator.genres else None
        self.show_judge = False
        self.commands = {
            "help": self.cmd_help,
            "quit": self.cmd_quit,
            "exit": self.cmd_quit,
            "genres": self.cmd_genres,
            "use": self.cmd_use,
            "gen": self.cmd_gen,
            "roll": self.cmd_roll,
            "judge": self.cmd_judge,
            "log": self.cmd_log,
        }

    def run(self) -> None:
        """Run the interactive CLI loop."""
        self.running = True
        print("Type 'help' for available commands, 'quit' to exit.\n")

        while self.running:
            try:
                user_input = input(f"[{self.genre or '-'}]> ").strip()
                if not user_input:
                    continue

                self.process_command(user_input)

            except KeyboardInterrupt:
                print("\nInterrupted. Type 'quit' to exit.")
            except EOFError:
                self.running = False

    def process_command(self, user_input: str) -> None:
        """Process a user command."""
        parts = user_input.split(maxsplit=1)
        cmd = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ""

        if cmd in self.commands:
            self.commands[cmd](args)
        else:
            print(f"Unknown command: {cmd}. Type 'help' for available commands.")

    def cmd_help(self, args: str) -> None:
        """Show help information."""
        print("""
Available Commands:
  genres       - List the genres in the menu data
  use GENRE    - Select the genre to generate for
  gen D1 D2 .. - Compose a menu from your dice results
                 (judged genres take the d100 judgement first: gen J D1 D2 ..)
  roll         - Roll the dice for the current genre and compose a menu
  judge on|off - Show the judgement line above judged menus
  log          - Show this session's run log
  help         - Show this help
  quit/exit    - Exit
""")

    def cmd_quit(self, args: str) -> None:
        """Quit."""
        self.running = False

    def cmd_genres(self, args: str) -> None:
        """List genres with their dice."""
        for genre in self.generator.genres:
            count, dice_type = self.generator.dice_requirement(genre)
            marker = "*" if genre == self.genre else " "
            judge = f" + 1d{JUDGE_DICE_TYPE} judgement" if self.generator.needs_judge(genre) else ""
            print(f" {marker} {genre} ({count}d{dice_type}{judge})")

    def cmd_use(self, args: str) -> None:
        """Select a genre."""
        genre = args.strip()
        if genre not in self.generator.genres:
            print(f"Unknown genre: {genre}. Type 'genres' to list them.")
            return
        self.genre = genre

    def cmd_gen(self, args: str) -> None:
        """Compose a menu from typed dice results."""
        if not self.generator.is_ready:
            print(self.generator.unavailable().message)
            return
        count, _ = self.generator.dice_requirement(self.genre)
        raw_values = args.split()
        judged = self.generator.needs_judge(self.genre)
        if judged:
            count += 1
        if len(raw_values) < count:
            raw_values += [""] * (count - len(raw_values))
        if judged:
            result = self.generator.generate_from_inputs(
                self.genre, raw_values[1:], raw_judge=raw_values[0], show_judge=self.show_judge
            )
        else:
            result = self.generator.generate_from_inputs(self.genre, raw_values)
        self._show(result)

    def cmd_roll(self, args: str) -> None:
        """Roll and compose a menu."""
        rolls, result = self.generator.roll_and_generate(self.genre or "")
        if rolls:
            print(f"Rolled: {' '.join(str(r) for r in rolls)}")
        self._show(result)

    def cmd_judge(self, args: str) -> None:
        """Toggle the judgement line."""
        setting = args.strip().lower()
        if setting not in ("on", "off"):
            state = "on" if self.show_judge else "off"
            print(f"Judgement line is {state}. Use 'judge on' or 'judge off'.")
            return
        self.show_judge = setting == "on"

    def cmd_log(self, args: str) -> None:
        """Show the run log."""
        print(self.generator.run_log.format_log(max_events=50))

    def _show(self, result: ResolveResult) -> None:
        print(result.text if result.ok else result.message)


# =============================================================================
# ARGUMENTS
# =============================================================================

def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Dice Menu - compose a menu from dice rolls",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m dice_menu.main                        # Run interactive mode
  python -m dice_menu.main --list-genres          # Show genres and their dice
  python -m dice_menu.main --genre Food 2 5       # Compose from your dice
  python -m dice_menu.main --genre Food --roll    # Let the tool roll
  python -m dice_menu.main --genre 成否判定メニュー --judge 42 --show-judge 3 5
        """
    )

    parser.add_argument(
        "dice",
        nargs="*",
        help="Dice results, one per slot of the genre",
    )
    parser.add_argument(
        "--genre",
        help="Genre to compose a menu for",
    )
    parser.add_argument(
        "--roll",
        action="store_true",
        help="Roll the dice instead of supplying them",
    )
    parser.add_argument(
        "--judge",
        default=None,
        help=f"Judgement roll (1-{JUDGE_DICE_TYPE}) for genres that use one",
    )
    parser.add_argument(
        "--show-judge",
        action="store_true",
        help="Show the judgement line above a judged menu",
    )
    parser.add_argument(
        "--list-genres",
        action="store_true",
        help="List genres in the menu data and exit",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    data_group = parser.add_argument_group("Menu Data Options")
    data_group.add_argument(
        "--menu-file",
        type=Path,
        default=None,
        help="Menu data JSON file (default: bundled dice_menu/data/menu_data.json)",
    )
    data_group.add_argument(
        "--strict",
        action="store_true",
        help="Require every list to hold exactly diceType entries",
    )
    data_group.add_argument(
        "--messages",
        choices=available_message_tables(),
        default="default",
        help="Message table for user-facing text (default: default)",
    )
    data_group.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for --roll, for reproducible results",
    )

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> MenuConfig:
    """Create MenuConfig from parsed arguments."""
    return MenuConfig(
        menu_file=args.menu_file,
        policy=ValidationPolicy.STRICT if args.strict else ValidationPolicy.LENIENT,
        messages=args.messages,
        seed=args.seed,
        verbose=args.verbose,
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    config = create_config_from_args(args)
    generator = MenuGenerator.from_config(config)

    if not generator.is_ready:
        print(generator.unavailable().message, file=sys.stderr)
        for err in generator.load_result.errors:
            print(f"  - {err}", file=sys.stderr)
        return EXIT_CONFIGURATION_FAILED

    if args.list_genres:
        for genre in generator.genres:
            count, dice_type = generator.dice_requirement(genre)
            judge = f"\t+1d{JUDGE_DICE_TYPE}" if generator.needs_judge(genre) else ""
            print(f"{genre}\t{count}d{dice_type}{judge}")
        return EXIT_OK

    if args.genre is None:
        MenuCLI(generator).run()
        return EXIT_OK

    if args.roll:
        rolls, result = generator.roll_and_generate(args.genre)
        if rolls:
            print(f"Rolled: {' '.join(str(r) for r in rolls)}", file=sys.stderr)
    else:
        result = generator.generate_from_inputs(
            args.genre, args.dice, raw_judge=args.judge, show_judge=args.show_judge
        )

    if result.ok:
        print(result.text)
        return EXIT_OK

    print(result.message, file=sys.stderr)
    return EXIT_RESOLUTION_FAILED


if __name__ == "__main__":
    sys.exit(main())
