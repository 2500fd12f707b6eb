"""Tests for repository configuration and backend selection."""
import json

import pytest

from rdf_repository.config import (
    CONFIG_FILENAME,
    ConfigValidator,
    RepositoryConfig,
    create_default_config,
)
from rdf_repository.errors import ConfigurationError
from rdf_repository.repository import Repository
from rdf_repository.storage import backend as backend_module
from rdf_repository.storage.backend import (
    MemoryBackend,
    available_backends,
    create_backend,
    register_backend,
)


@pytest.fixture
def isolated_registry(monkeypatch):
    """Backend registry copy, discarded after the test."""
    monkeypatch.setattr(backend_module, "_BACKENDS", dict(backend_module._BACKENDS))


# ========== RepositoryConfig Tests ==========

class TestRepositoryConfig:
    def test_defaults(self):
        config = RepositoryConfig()
        assert config.backend == "memory"
        assert config.uri is None
        assert config.options == {}

    def test_dict_round_trip(self):
        config = RepositoryConfig(uri="http://example.org/r", title="R", options={"k": 1})
        assert RepositoryConfig.from_dict(config.to_dict()) == config

    def test_save_and_load(self, tmp_path):
        config = create_default_config(uri="http://example.org/r", title="R")
        config_file = config.save(tmp_path / "repo")
        assert config_file.name == CONFIG_FILENAME
        assert json.loads(config_file.read_text())["title"] == "R"
        assert RepositoryConfig.load(tmp_path / "repo") == config

    def test_load_missing_gives_defaults(self, tmp_path):
        assert RepositoryConfig.load(tmp_path) == RepositoryConfig()

    def test_load_invalid_json(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            RepositoryConfig.load(tmp_path)

    def test_load_non_object(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("[]", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            RepositoryConfig.load(tmp_path)


# ========== ConfigValidator Tests ==========

class TestConfigValidator:
    def test_valid(self):
        assert ConfigValidator.validate(RepositoryConfig()) == []

    def test_unknown_backend(self):
        errors = ConfigValidator.validate(RepositoryConfig(backend="sled"))
        assert any("sled" in e for e in errors)

    def test_reserved_option_keys(self):
        errors = ConfigValidator.validate(RepositoryConfig(options={"uri": "x"}))
        assert errors

    def test_validate_or_raise(self):
        with pytest.raises(ConfigurationError):
            ConfigValidator.validate_or_raise(RepositoryConfig(title=5))


# ========== Backend Registry Tests ==========

class TestBackendRegistry:
    def test_memory_available(self):
        assert "memory" in available_backends()
        assert isinstance(create_backend("memory"), MemoryBackend)

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            create_backend("nope")

    def test_unexpected_options(self):
        with pytest.raises(ConfigurationError):
            create_backend("memory", path="/tmp/store")

    def test_register_backend(self, isolated_registry):
        class LocatedBackend(MemoryBackend):
            def __init__(self, location):
                super().__init__()
                self.location = location

        register_backend("located-test", LocatedBackend)
        config = RepositoryConfig(backend="located-test", backend_options={"location": "/data"})
        repository = Repository.from_config(config)
        assert repository.backend.location == "/data"

        with pytest.raises(ConfigurationError):
            Repository.from_config(RepositoryConfig(backend="located-test"))

    def test_factory_errors_are_not_config_errors(self, isolated_registry):
        """A TypeError raised inside a backend body propagates unchanged."""
        def broken_backend(location):
            return len(location)  # TypeError for an int

        register_backend("broken-test", broken_backend)
        with pytest.raises(TypeError):
            create_backend("broken-test", location=5)
        with pytest.raises(ConfigurationError):
            create_backend("broken-test", where="/data")

    def test_registry_restored(self):
        assert "located-test" not in available_backends()
        assert "broken-test" not in available_backends()

    def test_register_empty_name(self):
        with pytest.raises(ValueError):
            register_backend("", MemoryBackend)


class TestReservedOptions:
    @pytest.mark.parametrize("key", ["uri", "title", "backend", "configure"])
    def test_reserved_keys_rejected(self, key):
        config = RepositoryConfig(options={key: "memory"})
        assert ConfigValidator.validate(config)
        with pytest.raises(ConfigurationError):
            Repository.from_config(config)

    def test_other_options_pass_through(self):
        config = RepositoryConfig(options={"backend_hint": "memory"})
        assert Repository.from_config(config).options == {"backend_hint": "memory"}
