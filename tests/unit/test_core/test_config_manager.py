"""
Unit tests for ConfigManager: file layering, environment overrides and
validation failures.
"""

import pytest

from voiceagent.core import ConfigManager, ConfigurationError


class TestConfigManager:
    """Test suite for ConfigManager"""

    @pytest.mark.unit
    def test_loads_default_file(self, temp_config_dir, clean_env):
        config = ConfigManager(temp_config_dir).load_config()

        assert config.environment == "testing"
        assert config.processing.acceptance_threshold == 0.88
        assert config.teacher.enabled is False
        assert config.teacher.base_url == "http://localhost:9999/v1"
        assert config.teacher.timeout == 2.0
        assert config.gold_log.async_writes is False
        assert config.languages.timezones["et"] == "Europe/Tallinn"

    @pytest.mark.unit
    def test_defaults_without_files(self, tmp_path, clean_env):
        """Test an empty config directory yields built-in defaults"""
        config = ConfigManager(tmp_path).load_config()

        assert config.processing.acceptance_threshold == 0.88
        assert config.processing.default_language == "lv"
        assert config.teacher.base_url == "https://api.openai.com/v1"
        assert config.teacher.api_key is None
        assert config.languages.fallback_timezone == "Europe/Riga"

    @pytest.mark.unit
    def test_config_is_cached(self, temp_config_dir, clean_env):
        manager = ConfigManager(temp_config_dir)

        assert manager.config is manager.load_config()

    @pytest.mark.unit
    def test_environment_file_overrides_default(self, temp_config_dir, clean_env):
        (temp_config_dir / "testing.yaml").write_text(
            "processing:\n  acceptance_threshold: 0.7\n", encoding="utf-8"
        )

        config = ConfigManager(temp_config_dir, environment="testing").load_config()

        assert config.processing.acceptance_threshold == 0.7
        assert config.processing.start_tolerance_minutes == 5

    @pytest.mark.unit
    def test_local_file_wins(self, temp_config_dir, clean_env):
        (temp_config_dir / "testing.yaml").write_text("teacher:\n  model: env-model\n", encoding="utf-8")
        (temp_config_dir / "local.yaml").write_text("teacher:\n  model: local-model\n", encoding="utf-8")

        config = ConfigManager(temp_config_dir, environment="testing").load_config()

        assert config.teacher.model == "local-model"

    @pytest.mark.unit
    def test_env_var_override(self, temp_config_dir, clean_env):
        """Test VOICEAGENT_<SECTION>_<KEY> variables are typed and applied"""
        clean_env.setenv("VOICEAGENT_PROCESSING_ACCEPTANCE_THRESHOLD", "0.9")
        clean_env.setenv("VOICEAGENT_TEACHER_ENABLED", "true")
        clean_env.setenv("VOICEAGENT_TEACHER_BASE_URL", "http://llm.internal:8080/v1/")
        clean_env.setenv("VOICEAGENT_GOLD_LOG_ASYNC_WRITES", "false")

        config = ConfigManager(temp_config_dir).load_config()

        assert config.processing.acceptance_threshold == 0.9
        assert config.teacher.enabled is True
        assert config.teacher.base_url == "http://llm.internal:8080/v1"
        assert config.gold_log.async_writes is False

    @pytest.mark.unit
    def test_openai_key_fallback(self, temp_config_dir, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-from-env")

        config = ConfigManager(temp_config_dir).load_config()

        assert config.teacher.api_key.get_secret_value() == "sk-from-env"

    @pytest.mark.unit
    def test_explicit_key_beats_openai_variable(self, temp_config_dir, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-from-env")
        clean_env.setenv("VOICEAGENT_TEACHER_API_KEY", "sk-explicit")

        config = ConfigManager(temp_config_dir).load_config()

        assert config.teacher.api_key.get_secret_value() == "sk-explicit"

    @pytest.mark.unit
    def test_api_key_not_in_repr(self, temp_config_dir, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-secret-value")

        config = ConfigManager(temp_config_dir).load_config()

        assert "sk-secret-value" not in repr(config.teacher)

    @pytest.mark.unit
    def test_invalid_yaml(self, temp_config_dir, clean_env):
        (temp_config_dir / "local.yaml").write_text("processing: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigManager(temp_config_dir).load_config()

    @pytest.mark.unit
    def test_non_mapping_file(self, temp_config_dir, clean_env):
        (temp_config_dir / "local.yaml").write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigManager(temp_config_dir).load_config()

    @pytest.mark.unit
    @pytest.mark.parametrize("content", [
        "processing:\n  acceptance_threshold: 2.0\n",
        "teacher:\n  base_url: ftp://example.com\n",
        "teacher:\n  timeout: 0\n",
        "logging:\n  level: LOUD\n",
        "environment: moon\n",
    ])
    def test_validation_errors(self, temp_config_dir, clean_env, content):
        """Test out-of-range values are rejected as ConfigurationError"""
        (temp_config_dir / "local.yaml").write_text(content, encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigManager(temp_config_dir).load_config()

    @pytest.mark.unit
    def test_reload_picks_up_changes(self, temp_config_dir, clean_env):
        manager = ConfigManager(temp_config_dir)
        assert manager.load_config().processing.start_tolerance_minutes == 5

        (temp_config_dir / "local.yaml").write_text(
            "processing:\n  start_tolerance_minutes: 10\n", encoding="utf-8"
        )

        assert manager.load_config().processing.start_tolerance_minutes == 5
        assert manager.reload_config().processing.start_tolerance_minutes == 10

    @pytest.mark.unit
    @pytest.mark.parametrize("raw,expected", [
        ("true", True),
        ("False", False),
        ("12", 12),
        ("0.5", 0.5),
        ("lv,et", ["lv", "et"]),
        ("Europe/Riga", "Europe/Riga"),
    ])
    def test_env_value_conversion(self, tmp_path, raw, expected):
        assert ConfigManager(tmp_path)._convert_env_value(raw) == expected
