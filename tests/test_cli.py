import pytest

from claimbot.cli import main, parse_args

from conftest import DEV_KEY


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)  # keep any local .env out of the way
    for var in ("CLAIMBOT_CONFIG", "ACCOUNT_NAME", "PRIVATE_KEY", "ACCOUNT_NAME1", "PRIVATE_KEY1", "MAX_FEE"):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_run_is_the_default_command():
    args = parse_args([])
    assert args.command == "run"
    assert not args.once


def test_serve_options():
    args = parse_args(["serve", "--port", "9001", "--dev"])
    assert (args.command, args.port, args.dev) == ("serve", 9001, True)


def test_check_keys_accepts_valid_key(clean_env, capsys):
    clean_env.setenv("ACCOUNT_NAME1", "alice")
    clean_env.setenv("PRIVATE_KEY1", DEV_KEY)
    assert main(["check-keys"]) == 0
    assert "EOS6MRyAjQq8ud7hVNYcfnVPJqcVpscN5So8BhtHuGYqET5GDW5CV" in capsys.readouterr().out


def test_check_keys_flags_bad_key(clean_env):
    clean_env.setenv("ACCOUNT_NAME1", "alice")
    clean_env.setenv("PRIVATE_KEY1", "garbage")
    assert main(["check-keys"]) == 1


def test_config_error_exit_code(clean_env):
    clean_env.setenv("MAX_FEE", "lots")
    assert main(["check-keys"]) == 2
