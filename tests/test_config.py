"""Tests for configuration loading."""

from pathlib import Path

from cadence.config import Config, load_config


def write_conf(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "cadence.conf"
    path.write_text(text)
    return path


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "nope.conf")
        assert config == Config()
        assert config.timezone == "UTC"
        assert config.strict is False

    def test_parses_known_keys(self, tmp_path):
        path = write_conf(
            tmp_path,
            """
# Cadence settings
OWNER_ID = alice
TIMEZONE = "America/Toronto"  # local
DATA_DIR = ~/habits
LOG_LEVEL = info
STRICT = yes
CALENDAR_DAYS = 14
UNKNOWN_KEY = whatever
not a setting
""",
        )
        config = load_config(path)

        assert config.owner_id == "alice"
        assert config.timezone == "America/Toronto"
        assert config.data_dir == Path.home() / "habits"
        assert config.log_level == "INFO"
        assert config.strict is True
        assert config.calendar_days == 14

    def test_unquoted_inline_comment(self, tmp_path):
        config = load_config(write_conf(tmp_path, "owner_id = bob # me\n"))
        assert config.owner_id == "bob"

    def test_bad_values_keep_defaults(self, tmp_path, caplog):
        path = write_conf(
            tmp_path,
            "timezone = Mars/Olympus\nlog_level = loud\ncalendar_days = zero\n",
        )
        config = load_config(path)

        assert config.timezone == "UTC"
        assert config.log_level == "WARNING"
        assert config.calendar_days == 7
        assert "Unknown timezone" in caplog.text
