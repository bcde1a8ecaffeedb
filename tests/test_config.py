import pytest

from claimbot.config import BotConfig, accounts_from_env, load_config
from claimbot.errors import ConfigError

from conftest import DEV_KEY


def test_defaults_from_package_file():
    config = load_config(env={})
    assert config.game_contract == "diggerswgame"
    assert config.token_contract == "diggerstoken"
    assert config.check_interval == 15
    assert config.interval_seconds == 900
    assert config.repair_threshold == 50
    assert not config.auto_deposit
    assert not config.auto_withdraw
    assert config.max_fee is None
    assert config.accounts == ()


def test_environment_overrides():
    config = load_config(env={
        "ACCOUNT_NAME1": "alice",
        "PRIVATE_KEY1": DEV_KEY,
        "DEV_MODE": "1",
        "CHECK_INTERVAL": "5",
        "AUTO_WITHDRAW": "true",
        "WITHDRAW_THRESHOLD": "100 DWG, 5.5 DWD",
        "MAX_WITHDRAW": "50 DWG",
        "MAX_FEE": "min_fee",
        "CHAIN_ENDPOINTS": "https://a.example, https://b.example/",
    })
    assert config.dev_mode
    assert config.check_interval == 5
    assert config.auto_withdraw
    assert sorted(config.withdraw_thresholds) == ["DWD", "DWG"]
    assert str(config.withdraw_thresholds["DWD"]) == "5.5 DWD"
    assert str(config.max_withdraw["DWG"]) == "50 DWG"
    assert config.max_fee == "min_fee"
    assert config.endpoints == ("https://a.example", "https://b.example/")
    assert [a.name for a in config.accounts] == ["alice"]


def test_numeric_max_fee():
    assert load_config(env={"MAX_FEE": "2.5"}).max_fee == 2.5


def test_account_without_key_is_skipped():
    creds = accounts_from_env({
        "ACCOUNT_NAME1": "alice",
        "PRIVATE_KEY1": DEV_KEY,
        "ACCOUNT_NAME2": "bob",
    })
    assert [c.name for c in creds] == ["alice"]


def test_user_file_overrides_defaults(tmp_path):
    path = tmp_path / "bot.toml"
    path.write_text(
        "[schedule]\ncheck_interval = 30\n\n"
        "[[accounts]]\nname = \"carol\"\nprivate_key = \"" + DEV_KEY + "\"\n"
    )
    config = load_config(path, env={})
    assert config.check_interval == 30
    assert config.delay_min == 4
    assert [a.name for a in config.accounts] == ["carol"]


def test_environment_beats_user_file(tmp_path):
    path = tmp_path / "bot.toml"
    path.write_text("[schedule]\ncheck_interval = 30\n")
    assert load_config(path, env={"CHECK_INTERVAL": "2"}).check_interval == 2


def test_missing_user_file():
    with pytest.raises(ConfigError):
        load_config("/nonexistent/claimbot.toml", env={})


@pytest.mark.parametrize(
    "env",
    [
        {"MAX_FEE": "lots"},
        {"WITHDRAW_THRESHOLD": "a hundred"},
        {"DELAY_MIN": "20", "DELAY_MAX": "10"},
        {"CHECK_INTERVAL": "0"},
        {"CHECK_INTERVAL": "soon"},
    ],
)
def test_bad_settings_are_config_errors(env):
    with pytest.raises(ConfigError):
        load_config(env=env)


def test_empty_endpoint_list():
    with pytest.raises(ConfigError):
        BotConfig(endpoints=())
