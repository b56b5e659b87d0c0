"""Tests for configuration loading and management."""

import pytest

from conftest import BUNDLE_ID, CONFIG_PATH
from iap_orchestrator.config import (
    Config,
    ConfigurationError,
    get_config,
    reload_config,
    reset_config,
)
from iap_orchestrator.models import ValidationService

MINIMAL_YAML = """
bundle_id: com.example.app
products:
  - name: premium
    kind: {type: non_consumable}
"""


def write_config(tmp_path, content: str):
    path = tmp_path / "products.yaml"
    path.write_text(content, encoding="utf-8")
    return str(path)


class TestConfigurationLoading:
    """Test loading the shipped configuration."""

    def test_config_loads_successfully(self, config):
        """Test that configuration loads without errors."""
        assert config.config_path.exists()
        assert str(config.config_path).endswith("products.yaml")

    def test_bundle_id(self, config):
        assert config.bundle_id == BUNDLE_ID

    def test_registered_products(self, config):
        """Test the shipped catalog contains every registered product."""
        names = [p.name for p in config.products.products]
        assert names == [
            "purchase1",
            "purchase2",
            "nonConsumablePurchase",
            "consumablePurchase",
            "nonRenewingPurchase",
            "autoRenewableWeekly",
            "autoRenewableMonthly",
            "autoRenewableYearly",
        ]

    def test_non_renewing_window(self, config):
        product = next(p for p in config.products.products if p.name == "nonRenewingPurchase")
        assert product.kind.valid_duration_seconds == 60


class TestValidatorSettings:
    """Test receipt validator configuration access."""

    def test_validator_settings(self, config):
        settings = config.validator_settings
        assert settings.timeout_seconds == 30
        assert settings.sandbox_fallback is True
        assert config.validation_service == ValidationService.PRODUCTION

    def test_shared_secret_from_environment(self, config, monkeypatch):
        monkeypatch.setenv("IAP_SHARED_SECRET", "abc123")
        assert config.shared_secret == "abc123"

    def test_shared_secret_missing(self, config, monkeypatch):
        monkeypatch.delenv("IAP_SHARED_SECRET", raising=False)
        assert config.shared_secret is None

    def test_shared_secret_empty(self, config, monkeypatch):
        monkeypatch.setenv("IAP_SHARED_SECRET", "")
        assert config.shared_secret is None

    def test_defaults_when_block_omitted(self, tmp_path):
        config = Config(write_config(tmp_path, MINIMAL_YAML))
        assert config.validation_service == ValidationService.PRODUCTION
        assert config.validator_settings.shared_secret_env == "IAP_SHARED_SECRET"


class TestConfigurationErrors:
    """Test error handling for invalid configuration."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            Config(str(tmp_path / "missing.yaml"))

    def test_empty_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="empty"):
            Config(write_config(tmp_path, ""))

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigurationError, match="parse YAML"):
            Config(write_config(tmp_path, "bundle_id: [unclosed"))

    def test_non_mapping_root(self, tmp_path):
        with pytest.raises(ConfigurationError, match="mapping"):
            Config(write_config(tmp_path, "- a\n- b\n"))

    def test_unknown_kind(self, tmp_path):
        content = "bundle_id: com.example.app\nproducts:\n  - name: x\n    kind: {type: lifetime}\n"
        with pytest.raises(ConfigurationError, match="validation failed"):
            Config(write_config(tmp_path, content))

    def test_duplicate_names(self, tmp_path):
        content = MINIMAL_YAML + "  - name: premium\n    kind: {type: consumable}\n"
        with pytest.raises(ConfigurationError, match="Duplicate product name"):
            Config(write_config(tmp_path, content))

    def test_non_renewing_without_window(self, tmp_path):
        content = "bundle_id: com.example.app\nproducts:\n  - name: x\n    kind: {type: non_renewing}\n"
        with pytest.raises(ConfigurationError):
            Config(write_config(tmp_path, content))


class TestGlobalConfig:
    """Test the global configuration instance."""

    def test_singleton(self):
        first = get_config(str(CONFIG_PATH))
        assert get_config() is first

    def test_env_var_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CONFIG_PATH", write_config(tmp_path, MINIMAL_YAML))
        assert get_config().bundle_id == "com.example.app"

    def test_reload(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, MINIMAL_YAML)
        config = get_config(path)

        write_config(tmp_path, MINIMAL_YAML.replace("com.example.app", "com.example.other"))
        reload_config()

        assert config.bundle_id == "com.example.other"

    def test_reset(self):
        first = get_config(str(CONFIG_PATH))
        reset_config()
        assert get_config(str(CONFIG_PATH)) is not first
