import pytest

from expenses.exceptions import ConfigError
from expenses.settings import AppSettings

CONFIG = """
app:
  name: "Expense Tracker"
api:
  base_url: "http://localhost:7001/api/"
  timeout_seconds: 5
logging:
  level: "DEBUG"
ui:
  page_size: 20
  currency_symbol: "$"
"""


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("EXPENSES_API_URL", "EXPENSES_API_TIMEOUT", "EXPENSES_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_from_yaml(tmp_path, clean_env):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")

    settings = AppSettings.load(path, env_file=tmp_path / ".env")

    assert settings.api_base_url == "http://localhost:7001/api"
    assert settings.api_timeout_seconds == 5.0
    assert settings.log_level == "DEBUG"
    assert settings.log_file is None
    assert settings.page_size == 20
    assert settings.recent_count == 5
    assert settings.currency_symbol == "$"


def test_environment_overrides(tmp_path, clean_env):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    clean_env.setenv("EXPENSES_API_URL", "https://expenses.example.com/api/")
    clean_env.setenv("EXPENSES_API_TIMEOUT", "2.5")

    settings = AppSettings.load(path, env_file=tmp_path / ".env")

    assert settings.api_base_url == "https://expenses.example.com/api"
    assert settings.api_timeout_seconds == 2.5


def test_dotenv_file_is_read(tmp_path, clean_env):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    env_file = tmp_path / ".env"
    env_file.write_text("EXPENSES_LOG_LEVEL=WARNING\n", encoding="utf-8")

    assert AppSettings.load(path, env_file=env_file).log_level == "WARNING"


def test_missing_file(tmp_path, clean_env):
    with pytest.raises(ConfigError):
        AppSettings.load(tmp_path / "missing.yaml")


def test_malformed_config(tmp_path, clean_env):
    path = tmp_path / "config.yaml"
    path.write_text("app:\n  name: x\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        AppSettings.load(path, env_file=tmp_path / ".env")

    path.write_text(CONFIG.replace("page_size: 20", "page_size: 0"), encoding="utf-8")
    with pytest.raises(ConfigError):
        AppSettings.load(path, env_file=tmp_path / ".env")


def test_repository_config_loads(clean_env, tmp_path):
    settings = AppSettings.load(env_file=tmp_path / ".env")
    assert settings.page_size == 10
    assert settings.api_base_url == "http://localhost:7001/api"
