from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from gamebot.game_config import (
    DEFAULT_GAME_CONFIG,
    GameConfig,
    get_game_config,
    load_game_configs,
    parse_game_configs,
)


SAMPLE = """
# 섹션 밖 줄은 무시
stray = value

[dota2]
msg = Ancient defense, 5 stack!
time = 10

[PUBG]
time = soon
msg = Squad up = now

[Custom]
time = 5
time = later
not a key value line
"""


class ParseGameConfigTests(unittest.TestCase):
    def test_sections_are_upper_cased(self):
        configs = parse_game_configs(SAMPLE)
        self.assertEqual(set(configs), {"DOTA2", "PUBG", "CUSTOM"})

    def test_msg_and_time_are_read(self):
        configs = parse_game_configs(SAMPLE)
        self.assertEqual(configs["DOTA2"], GameConfig(message="Ancient defense, 5 stack!", delay_minutes=10))

    def test_value_keeps_everything_after_first_equals(self):
        configs = parse_game_configs(SAMPLE)
        self.assertEqual(configs["PUBG"].message, "Squad up = now")

    def test_non_numeric_time_keeps_previous_value(self):
        configs = parse_game_configs(SAMPLE)
        self.assertEqual(configs["PUBG"].delay_minutes, 0)
        self.assertEqual(configs["CUSTOM"].delay_minutes, 5)

    def test_section_without_keys_gets_defaults(self):
        configs = parse_game_configs("[CS2]\n")
        self.assertEqual(configs["CS2"], GameConfig(message="Game on!", delay_minutes=0))

    def test_lines_before_any_section_are_ignored(self):
        self.assertEqual(parse_game_configs("msg = hi\ntime = 3\n"), {})


class LoadGameConfigTests(unittest.TestCase):
    def test_missing_file_means_no_configs(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(load_game_configs(Path(tmp) / "missing.conf"), {})

    def test_load_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "game.conf"
            path.write_text(SAMPLE, encoding="utf-8")
            configs = load_game_configs(path)
        self.assertEqual(configs["DOTA2"].delay_minutes, 10)

    def test_unconfigured_game_falls_back_to_default(self):
        configs = parse_game_configs(SAMPLE)
        self.assertIs(get_game_config(configs, "valorant"), DEFAULT_GAME_CONFIG)
        self.assertEqual(get_game_config(configs, "dota2").delay_minutes, 10)


if __name__ == "__main__":
    unittest.main()
