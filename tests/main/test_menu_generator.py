"""
Tests for MenuGenerator and the command-line entry point.
"""

import json
from unittest.mock import patch

import pytest

from dice_menu.main import (
    EXIT_CONFIGURATION_FAILED,
    EXIT_OK,
    EXIT_RESOLUTION_FAILED,
    MenuCLI,
    MenuConfig,
    MenuGenerator,
    create_config_from_args,
    main,
    parse_arguments,
)
from dice_menu.observability import EventType
from dice_menu.tables import PLAIN_MESSAGES, SPECIAL_EFFECT_MARKER, FailureKind, ValidationPolicy


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def generator(menu_file, run_log):
    """A ready generator over the special_data menu file."""
    return MenuGenerator.from_config(MenuConfig(menu_file=menu_file), run_log=run_log)


@pytest.fixture
def judge_file(tmp_path, judge_data):
    """judge_data written to a JSON file."""
    path = tmp_path / "judge_menu.json"
    path.write_text(json.dumps(judge_data, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def judge_generator(judge_file, run_log):
    """A ready generator over the judge_data menu file."""
    return MenuGenerator.from_config(MenuConfig(menu_file=judge_file), run_log=run_log)


@pytest.fixture
def broken_generator(tmp_path, run_log):
    """A generator whose menu data failed to load."""
    return MenuGenerator.from_config(MenuConfig(menu_file=tmp_path / "missing.json"), run_log=run_log)


# =============================================================================
# CONFIG
# =============================================================================


class TestMenuConfig:
    """Tests for MenuConfig."""

    def test_defaults(self):
        config = MenuConfig()
        assert config.menu_file is None
        assert config.policy == ValidationPolicy.LENIENT
        assert config.messages == "default"

    def test_coerces_strings(self):
        config = MenuConfig(menu_file="menu.json", policy="strict")
        assert config.menu_file.name == "menu.json"
        assert config.policy == ValidationPolicy.STRICT

    def test_from_args(self):
        args = parse_arguments(["--strict", "--messages", "plain", "--seed", "5", "--genre", "Food", "1", "2"])
        config = create_config_from_args(args)
        assert config.policy == ValidationPolicy.STRICT
        assert config.messages == "plain"
        assert config.seed == 5
        assert args.dice == ["1", "2"]

    def test_unknown_message_table_rejected(self, menu_file):
        with pytest.raises(ValueError):
            MenuGenerator.from_config(MenuConfig(menu_file=menu_file, messages="klingon"))


# =============================================================================
# GENERATOR
# =============================================================================


class TestMenuGenerator:
    """Tests for MenuGenerator."""

    def test_ready(self, generator):
        assert generator.is_ready
        assert generator.genres == ["Food", "Drink"]
        assert generator.dice_requirement("Drink") == (2, 3)
        assert generator.dice_requirement("Pizza") is None

    def test_load_is_logged(self, generator, run_log):
        loads = run_log.get_events(EventType.CONFIG_LOAD)
        assert len(loads) == 1
        assert loads[0].success is True
        assert loads[0].genres_loaded == 2

    def test_generate(self, generator, run_log):
        result = generator.generate("Food", [2, 5])
        assert result.text == "「Sweet Stew」"
        event = run_log.get_resolutions()[-1]
        assert event.success and event.result_text == "「Sweet Stew」"

    def test_generate_from_inputs(self, generator):
        assert generator.generate_from_inputs("Food", ["2", " 5"]).text == "「Sweet Stew」"

    def test_generate_from_inputs_failures(self, generator, run_log):
        assert generator.generate_from_inputs("Food", ["2", ""]).kind == FailureKind.MISSING_INPUT
        assert generator.generate_from_inputs("Food", ["2", "x"]).kind == FailureKind.NOT_A_NUMBER
        assert generator.generate_from_inputs("Food", ["2", "9"]).kind == FailureKind.OUT_OF_RANGE
        kinds = [e.failure_kind for e in run_log.get_resolutions()]
        assert kinds == ["missing_input", "not_a_number", "out_of_range"]

    def test_malformed_configuration_is_logged_for_operators(self, generator, caplog):
        with patch("dice_menu.main.resolve") as fake_resolve:
            from dice_menu.tables.menu_resolver import failure

            fake_resolve.return_value = failure(FailureKind.MALFORMED_CONFIGURATION, genre="Food")
            result = generator.generate("Food", [1, 1])
        assert result.kind == FailureKind.MALFORMED_CONFIGURATION
        assert "Menu data defect for genre 'Food'" in caplog.text

    def test_roll_and_generate(self, generator, run_log, seeded_dice):
        rolls, result = generator.roll_and_generate("Drink")
        assert len(rolls) == 2
        assert all(1 <= r <= 3 for r in rolls)
        assert result.ok
        assert run_log.get_rolls()[-1].context == {"genre": "Drink"}
        assert run_log.get_resolutions()[-1].dice_results == rolls

    def test_roll_is_reproducible(self, menu_file, run_log):
        config = MenuConfig(menu_file=menu_file, seed=99)
        first = MenuGenerator.from_config(config, run_log=run_log).roll_and_generate("Food")
        second = MenuGenerator.from_config(config, run_log=run_log).roll_and_generate("Food")
        assert first == second
        assert run_log.get_seed() == 99

    def test_roll_unknown_genre(self, generator):
        assert generator.roll_dice("Pizza") is None
        rolls, result = generator.roll_and_generate("Pizza")
        assert rolls == []
        assert result.kind == FailureKind.UNKNOWN_GENRE

    def test_special_effect_through_generator(self, generator):
        text = generator.generate("Drink", [1, 3]).text
        assert text.startswith(f"「{SPECIAL_EFFECT_MARKER} Milk」\n\ndice1d3=")

    def test_plain_messages(self, menu_file, run_log):
        config = MenuConfig(menu_file=menu_file, messages="plain")
        generator = MenuGenerator.from_config(config, run_log=run_log)
        assert generator.messages is PLAIN_MESSAGES
        assert generator.generate("Pizza", [1]).message == "Unknown genre 'Pizza'."


class TestUnavailableGenerator:
    """A failed load leaves the generator unusable."""

    def test_not_ready(self, broken_generator, run_log):
        assert not broken_generator.is_ready
        assert broken_generator.genres == []
        assert broken_generator.store is None
        assert run_log.get_events(EventType.CONFIG_LOAD)[0].failure_kind == "configuration_load_failure"

    def test_every_call_returns_load_diagnostic(self, broken_generator, run_log):
        for result in (
            broken_generator.generate("Food", [1, 1]),
            broken_generator.generate_from_inputs("Food", ["1", "1"]),
            broken_generator.roll_and_generate("Food")[1],
        ):
            assert result.kind == FailureKind.CONFIGURATION_LOAD_FAILURE
            assert result.kind.is_fatal
            assert "メニューデータが読み込めねぇな" in result.message
        assert run_log.get_resolutions() == []

    def test_integrity_failure(self, tmp_path, run_log):
        path = tmp_path / "menu.json"
        path.write_text(json.dumps({"Food": {"diceType": 6, "parts": ["a"], "lists": {}}}), encoding="utf-8")
        generator = MenuGenerator.from_config(MenuConfig(menu_file=path), run_log=run_log)
        result = generator.generate("Food", [1])
        assert result.kind == FailureKind.CONFIGURATION_INTEGRITY_FAILURE

    def test_without_load_result(self, run_log):
        generator = MenuGenerator(run_log=run_log)
        result = generator.generate("Food", [1])
        assert result.kind == FailureKind.CONFIGURATION_LOAD_FAILURE
        assert result.message == "メニューデータがまだ読み込まれていません。"


# =============================================================================
# COMMAND LINE
# =============================================================================


class TestMain:
    """Tests for main() exit codes and output."""

    def test_generate(self, menu_file, run_log, capsys):
        code = main(["--menu-file", str(menu_file), "--genre", "Food", "2", "5"])
        assert code == EXIT_OK
        assert capsys.readouterr().out == "「Sweet Stew」\n"

    def test_resolution_failure(self, menu_file, run_log, capsys):
        code = main(["--menu-file", str(menu_file), "--messages", "plain", "--genre", "Food", "2", "7"])
        assert code == EXIT_RESOLUTION_FAILED
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "7 is not a valid roll" in captured.err

    def test_missing_dice(self, menu_file, run_log, capsys):
        code = main(["--menu-file", str(menu_file), "--genre", "Food"])
        assert code == EXIT_RESOLUTION_FAILED

    def test_load_failure(self, tmp_path, run_log, capsys):
        code = main(["--menu-file", str(tmp_path / "missing.json"), "--list-genres"])
        assert code == EXIT_CONFIGURATION_FAILED
        assert "Failed to read file" in capsys.readouterr().err

    def test_list_genres(self, menu_file, run_log, capsys):
        code = main(["--menu-file", str(menu_file), "--list-genres"])
        assert code == EXIT_OK
        assert capsys.readouterr().out.splitlines() == ["Food\t2d6", "Drink\t2d3"]

    def test_roll(self, menu_file, run_log, capsys):
        code = main(["--menu-file", str(menu_file), "--seed", "1", "--genre", "Food", "--roll"])
        assert code == EXIT_OK
        captured = capsys.readouterr()
        assert captured.err.startswith("Rolled: ")
        assert captured.out.startswith("「")

    def test_bundled_data(self, run_log, capsys):
        assert main(["--genre", "Food", "2", "5"]) == EXIT_OK
        assert capsys.readouterr().out == "「Sweet Stew」\n"


class TestMenuCLI:
    """Tests for the interactive command processing."""

    def test_defaults_to_first_genre(self, generator):
        assert MenuCLI(generator).genre == "Food"

    def test_gen(self, generator, capsys):
        cli = MenuCLI(generator)
        cli.process_command("gen 2 5")
        assert capsys.readouterr().out == "「Sweet Stew」\n"

    def test_gen_with_too_few_values(self, generator, capsys):
        cli = MenuCLI(generator)
        cli.process_command("gen 2")
        assert "2つ" in capsys.readouterr().out

    def test_use_and_roll(self, generator, seeded_dice, capsys):
        cli = MenuCLI(generator)
        cli.process_command("use Drink")
        assert cli.genre == "Drink"
        cli.process_command("roll")
        out = capsys.readouterr().out
        assert out.startswith("Rolled: ")
        assert "「" in out

    def test_use_unknown_genre(self, generator, capsys):
        cli = MenuCLI(generator)
        cli.process_command("use Pizza")
        assert cli.genre == "Food"
        assert "Unknown genre: Pizza" in capsys.readouterr().out

    def test_genres(self, generator, capsys):
        MenuCLI(generator).process_command("genres")
        out = capsys.readouterr().out
        assert " * Food (2d6)" in out
        assert "   Drink (2d3)" in out

    def test_unknown_command(self, generator, capsys):
        MenuCLI(generator).process_command("dance")
        assert "Unknown command: dance" in capsys.readouterr().out

    def test_run_until_quit(self, generator, capsys):
        cli = MenuCLI(generator)
        with patch("builtins.input", side_effect=["gen 1 1", "quit"]):
            cli.run()
        assert "「Spicy Ramen」" in capsys.readouterr().out
        assert cli.running is False

    def test_run_stops_on_eof(self, generator):
        cli = MenuCLI(generator)
        with patch("builtins.input", side_effect=EOFError):
            cli.run()
        assert cli.running is False


# =============================================================================
# JUDGED GENRES
# =============================================================================


class TestJudgedGenre:
    """Tests for genres with a d100 judgement through the front end."""

    def test_needs_judge(self, judge_generator):
        assert judge_generator.needs_judge("Hope")
        assert not judge_generator.needs_judge("Food")
        assert not judge_generator.needs_judge("Pizza")

    def test_generate_records_judge(self, judge_generator, run_log):
        result = judge_generator.generate("Hope", [1, 2], judge=77)
        assert result.text == "「Crumbs Bread」"
        assert run_log.get_resolutions()[-1].judge == 77

    def test_generate_from_inputs(self, judge_generator):
        result = judge_generator.generate_from_inputs(
            "Hope", ["1", "2"], raw_judge="30", show_judge=True
        )
        assert result.text == "成否判定: 30→成功！\nメニュー: 「Feast Bread」"

    def test_blank_judge_is_missing_input(self, judge_generator):
        result = judge_generator.generate_from_inputs("Hope", ["1", "2"])
        assert result.kind == FailureKind.MISSING_INPUT
        assert result.details["count"] == 3

    def test_judge_must_be_number(self, judge_generator):
        result = judge_generator.generate_from_inputs("Hope", ["1", "2"], raw_judge="５０")
        assert result.kind == FailureKind.NOT_A_NUMBER

    def test_judge_out_of_range(self, judge_generator):
        result = judge_generator.generate_from_inputs("Hope", ["1", "2"], raw_judge="101")
        assert result.kind == FailureKind.OUT_OF_RANGE
        assert "100面体" in result.message

    def test_roll_and_generate_rolls_judge(self, judge_generator, run_log, seeded_dice):
        rolls, result = judge_generator.roll_and_generate("Hope")
        assert len(rolls) == 2
        assert result.ok
        assert result.text.startswith("成否判定: ")
        notations = [e.notation for e in run_log.get_rolls()]
        assert notations == ["2d3", "1d100"]
        assert run_log.get_resolutions()[-1].judge == run_log.get_rolls()[-1].rolls[0]

    def test_roll_judge_only_for_judged_genres(self, judge_generator, seeded_dice):
        assert judge_generator.roll_judge("Food") is None
        assert 1 <= judge_generator.roll_judge("Hope") <= 100

    def test_non_iterable_dice_do_not_raise(self, judge_generator, run_log):
        result = judge_generator.generate("Food", None)
        assert result.kind == FailureKind.ARITY_MISMATCH
        assert run_log.get_resolutions()[-1].dice_results == []

    def test_main_with_judge(self, judge_file, run_log, capsys):
        code = main([
            "--menu-file", str(judge_file), "--genre", "Hope",
            "--judge", "90", "--show-judge", "2", "3",
        ])
        assert code == EXIT_OK
        assert capsys.readouterr().out == "成否判定: 90→失敗…\nメニュー: 「Leftovers Soup」\n"

    def test_main_missing_judge(self, judge_file, run_log, capsys):
        code = main(["--menu-file", str(judge_file), "--genre", "Hope", "2", "3"])
        assert code == EXIT_RESOLUTION_FAILED
        assert "3つ" in capsys.readouterr().err

    def test_main_lists_judge_die(self, judge_file, run_log, capsys):
        assert main(["--menu-file", str(judge_file), "--list-genres"]) == EXIT_OK
        assert capsys.readouterr().out.splitlines() == ["Food\t2d6", "Hope\t2d3\t+1d100"]

    def test_cli_gen_takes_judge_first(self, judge_generator, capsys):
        cli = MenuCLI(judge_generator)
        cli.process_command("use Hope")
        cli.process_command("gen 10 2 1")
        assert capsys.readouterr().out == "「Banquet Salad」\n"

    def test_cli_judge_toggle(self, judge_generator, capsys):
        cli = MenuCLI(judge_generator)
        cli.process_command("use Hope")
        cli.process_command("judge on")
        cli.process_command("gen 60 2 1")
        assert capsys.readouterr().out == "成否判定: 60→失敗…\nメニュー: 「Leftovers Salad」\n"
        cli.process_command("judge")
        assert "Judgement line is on" in capsys.readouterr().out

    def test_cli_genres_shows_judge_die(self, judge_generator, capsys):
        MenuCLI(judge_generator).process_command("genres")
        assert "   Hope (2d3 + 1d100 judgement)" in capsys.readouterr().out
