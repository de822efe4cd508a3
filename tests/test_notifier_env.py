import pytest

from casenotifier.controller import Controller
from casenotifier.notifier_env import (
    NotifierConfig,
    NotifierEnvironment,
    render_config,
)
from casenotifier.recurrence import FRIDAY
from conftest import local_ts


@pytest.mark.unit
def test_home_comes_from_environment(isolated_home):
    env = NotifierEnvironment()
    assert env.home == isolated_home
    assert env.data_path == isolated_home / "accounts.dat"


@pytest.mark.unit
def test_home_defaults_to_working_directory(monkeypatch, tmp_path):
    monkeypatch.delenv("CASENOTIFIER_HOME", raising=False)
    monkeypatch.chdir(tmp_path)
    assert NotifierEnvironment().home.resolve() == tmp_path.resolve()


@pytest.mark.unit
def test_ensure_writes_commented_config(test_env):
    text = test_env.config_path.read_text(encoding="utf-8")
    assert 'anchor_weekday = "wed"' in text
    assert "# atomic_writes" in text
    assert text == render_config(NotifierConfig())


@pytest.mark.unit
def test_config_values_are_loaded(test_env):
    test_env.config_path.write_text(
        '[schedule]\nanchor_weekday = "Friday"\n\n[store]\nfilename = "drops.dat"\n',
        encoding="utf-8",
    )
    config = test_env.load_config()
    assert config.schedule.anchor_weekday == "fri"
    assert test_env.data_path == test_env.home / "drops.dat"
    # missing sections are filled back in
    assert "[ui]" in test_env.config_path.read_text(encoding="utf-8")


@pytest.mark.unit
@pytest.mark.parametrize(
    "body",
    [
        '[schedule]\nanchor_weekday = "someday"\n',
        "[ui]\nrefresh_seconds = 0.1\n",
        "not = valid = toml\n",
    ],
)
def test_invalid_config_falls_back_to_defaults(test_env, body, capsys):
    test_env.config_path.write_text(body, encoding="utf-8")
    config = test_env.load_config()
    assert config == NotifierConfig()
    assert "Config error" in capsys.readouterr().out
    # the user's file is left alone
    assert test_env.config_path.read_text(encoding="utf-8") == body


@pytest.mark.unit
def test_controller_uses_configured_anchor(test_env, clock):
    test_env.config_path.write_text(
        '[schedule]\nanchor_weekday = "fri"\n', encoding="utf-8"
    )
    test_env.load_config()
    controller = Controller.from_env(test_env, clock)
    assert controller.store.anchor_weekday == FRIDAY
    controller.add_account("main", local_ts(2025, 1, 15, 10))
    # Wednesday -> Friday of the same week
    assert controller.store[0].get_next_occurrence() == local_ts(2025, 1, 17)
    assert test_env.data_path.exists()
