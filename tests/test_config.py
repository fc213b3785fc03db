import logging

import pytest

from gradle_cli.config import MigrateConfig


def write_config(tmp_path, body):
    path = tmp_path / ".gradle-migrate.toml"
    path.write_text("[tool.gradle-migrate]\n" + body)
    return path


def test_config_loads_values(tmp_path):
    config = MigrateConfig(
        write_config(
            tmp_path,
            'select = ["CRITICAL", "HIGH"]\nignore = ["TASK_LEFTSHIFT"]\n'
            'exclude_dirs = ["vendor"]\nrules_file = "rules/custom.toml"\nworkers = 4\n',
        )
    )
    assert config.select == ["CRITICAL", "HIGH"]
    assert config.ignore == ["TASK_LEFTSHIFT"]
    assert config.exclude_dirs == {"build", ".gradle", "vendor"}
    assert config.rules_file == (tmp_path / "rules" / "custom.toml").resolve()
    assert config.workers == 4


def test_missing_config_uses_defaults(tmp_path):
    config = MigrateConfig(tmp_path / "absent.toml")
    assert config.select == ["ALL"]
    assert config.ignore == []
    assert config.workers == 1
    assert config.rules_file is None


@pytest.mark.parametrize(
    "body",
    [
        'workers = "many"\n',
        "workers = 0\n",
        'select = "CRITICAL"\n',
        "ignore = [1, 2]\n",
        "exclude_dirs = \"vendor\"\n",
        "select = [\n",
    ],
)
def test_invalid_config_falls_back_to_defaults(tmp_path, caplog, body):
    with caplog.at_level(logging.WARNING, logger="gradle_cli.config"):
        config = MigrateConfig(write_config(tmp_path, body))

    assert config.select == ["ALL"]
    assert config.ignore == []
    assert config.exclude_dirs == {"build", ".gradle"}
    assert config.workers == 1
    assert "Ignoring config" in caplog.text
