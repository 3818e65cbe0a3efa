"""Tests for configuration loading, validation and overrides."""

import json

import pytest

from nvim_macros.config import Config
from nvim_macros.errors import ConfigError
from nvim_macros.storage.factory import get_storage_backend
from nvim_macros.storage.json_backend import JSONStorage


@pytest.fixture
def config_dir(tmp_path):
    return tmp_path / "cfg"


class TestDefaults:

    def test_defaults(self, config_dir):
        config = Config(config_dir=str(config_dir))
        assert config.get("default_macro_register") == "q"
        assert config.get_formatter() == "none"
        assert config.get_macros_path() == config_dir / "macros.json"
        assert not config_dir.exists()

    def test_home_env_var(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NVIM_MACROS_HOME", str(tmp_path / "home"))
        config = Config()
        assert config.get_macros_path() == tmp_path / "home" / "macros.json"


class TestConfigFile:

    def test_file_overrides_defaults(self, config_dir):
        config_dir.mkdir()
        (config_dir / "config.json").write_text(
            json.dumps({"json_formatter": "jq", "formatter_timeout": 3}), encoding="utf-8"
        )
        config = Config(config_dir=str(config_dir))
        assert config.get_formatter() == "jq"
        assert config.storage_config()["formatter_timeout"] == 3.0

    def test_corrupt_file_uses_defaults(self, config_dir, caplog):
        config_dir.mkdir()
        (config_dir / "config.json").write_text("{oops", encoding="utf-8")
        config = Config(config_dir=str(config_dir))
        assert config.get_formatter() == "none"
        assert "unreadable" in caplog.text

    def test_unknown_keys_are_ignored(self, config_dir, caplog):
        config_dir.mkdir()
        (config_dir / "config.json").write_text('{"colour": "red"}', encoding="utf-8")
        config = Config(config_dir=str(config_dir))
        assert config.get("colour") is None
        assert "colour" in caplog.text

    def test_set_persists(self, config_dir):
        config = Config(config_dir=str(config_dir))
        config.set("json_formatter", "yq")
        assert Config(config_dir=str(config_dir)).get_formatter() == "yq"


class TestEnvironment:

    def test_env_overrides_file(self, config_dir, monkeypatch, tmp_path):
        config_dir.mkdir()
        (config_dir / "config.json").write_text('{"json_formatter": "jq"}', encoding="utf-8")
        monkeypatch.setenv("NVIM_MACROS_FORMATTER", "yq")
        monkeypatch.setenv("NVIM_MACROS_FILE", str(tmp_path / "other.json"))

        config = Config(config_dir=str(config_dir))
        assert config.get_formatter() == "yq"
        assert config.get_macros_path() == tmp_path / "other.json"

    def test_dotenv_file(self, config_dir, tmp_path):
        (tmp_path / ".env").write_text("NVIM_MACROS_REGISTER=z\n", encoding="utf-8")
        config = Config(config_dir=str(config_dir))
        assert config.get("default_macro_register") == "z"

    def test_env_can_be_disabled(self, config_dir, monkeypatch):
        monkeypatch.setenv("NVIM_MACROS_FORMATTER", "yq")
        config = Config(config_dir=str(config_dir), use_env=False)
        assert config.get_formatter() == "none"


class TestSetup:

    def test_applies_valid_values(self, config_dir, tmp_path):
        config = Config(config_dir=str(config_dir))
        config.setup({"json_formatter": "jq", "default_macro_register": "a",
                      "json_file_path": str(tmp_path / "m.json")})
        assert config.get_formatter() == "jq"
        assert config.get("default_macro_register") == "a"
        assert config.get_macros_path() == tmp_path / "m.json"

    @pytest.mark.parametrize("user_config", [
        {"no_such_key": 1},
        {"json_formatter": "prettier"},
        {"default_macro_register": "Q"},
        {"formatter_timeout": "soon"},
        {"formatter_timeout": 0},
        {"json_file_path": ""},
    ])
    def test_rejects_invalid_values(self, config_dir, user_config):
        config = Config(config_dir=str(config_dir))
        before = dict(config.settings)
        with pytest.raises(ConfigError):
            config.setup(user_config)
        assert config.settings == before

    def test_storage_factory(self, config_dir):
        config = Config(config_dir=str(config_dir))
        config.setup({"json_formatter": "jq", "formatter_timeout": 2})
        storage = get_storage_backend(config.storage_config())
        assert isinstance(storage, JSONStorage)
        assert storage.formatter == "jq"
        assert storage.timeout == 2.0

    def test_factory_requires_path(self):
        with pytest.raises(ConfigError):
            get_storage_backend({})


class TestSave:

    def test_env_overrides_are_not_written(self, config_dir, monkeypatch, tmp_path):
        config_dir.mkdir()
        (config_dir / "config.json").write_text('{"default_macro_register": "a"}', encoding="utf-8")
        monkeypatch.setenv("NVIM_MACROS_FILE", str(tmp_path / "scratch.json"))
        monkeypatch.setenv("NVIM_MACROS_FORMATTER", "yq")

        config = Config(config_dir=str(config_dir))
        config.setup({"formatter_timeout": 4})
        config.set("json_formatter", "jq")

        saved = json.loads((config_dir / "config.json").read_text(encoding="utf-8"))
        assert saved == {"default_macro_register": "a", "json_formatter": "jq"}
        monkeypatch.delenv("NVIM_MACROS_FILE")
        monkeypatch.delenv("NVIM_MACROS_FORMATTER")
        reloaded = Config(config_dir=str(config_dir))
        assert reloaded.get_macros_path() == config_dir / "macros.json"
        assert reloaded.get_formatter() == "jq"
