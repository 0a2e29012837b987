"""Unit tests for configuration loading."""

from pathlib import Path

import pytest

from diffviz.config import (
    DiffvizConfig,
    create_argument_parser,
    detect_hosted_environment,
    load_config,
    load_config_from_env,
)
from diffviz.constants import (
    ENV_DEFAULT_AUTO_OPEN,
    ENV_DEFAULT_OUTPUT_MODE,
    ENV_ENABLE_ACCESS_GATE,
    ENV_GIST_API_URL,
    ENV_GITHUB_TOKEN,
    ENV_HOSTED,
    ENV_HTTP_TIMEOUT,
    ENV_LOG_LEVEL,
    ENV_OUTPUT_DIR,
    ENV_RASTER_TIMEOUT,
    HOSTED_ENV_MARKERS,
)

_ALL_ENV = (
    ENV_DEFAULT_AUTO_OPEN,
    ENV_DEFAULT_OUTPUT_MODE,
    ENV_ENABLE_ACCESS_GATE,
    ENV_GIST_API_URL,
    ENV_HOSTED,
    ENV_HTTP_TIMEOUT,
    ENV_LOG_LEVEL,
    ENV_OUTPUT_DIR,
    ENV_RASTER_TIMEOUT,
    *ENV_GITHUB_TOKEN,
    *HOSTED_ENV_MARKERS,
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in _ALL_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.mark.unit
class TestDetectHostedEnvironment:
    """Tests for detect_hosted_environment."""

    def test_plain_local(self):
        assert detect_hosted_environment({}, "/home/user/project") == (False, None)

    @pytest.mark.parametrize("marker", HOSTED_ENV_MARKERS)
    def test_env_markers(self, marker):
        assert detect_hosted_environment({marker: "1"}, "/home/user") == (True, marker)

    def test_app_workdir(self):
        assert detect_hosted_environment({}, "/app") == (True, "working directory /app")

    def test_explicit_setting_wins(self):
        assert detect_hosted_environment({ENV_HOSTED: "false", "VERCEL": "1"}, "/app") == (False, ENV_HOSTED)
        assert detect_hosted_environment({ENV_HOSTED: "yes"}, "/home") == (True, ENV_HOSTED)

    def test_blank_explicit_setting_is_ignored(self):
        assert detect_hosted_environment({ENV_HOSTED: "  ", "K_SERVICE": "svc"}, "/home") == (True, "K_SERVICE")


@pytest.mark.unit
class TestLoadConfigFromEnv:
    """Tests for load_config_from_env."""

    def test_defaults(self, clean_env):
        config = load_config_from_env()

        assert config == DiffvizConfig()
        assert config.has_remote_credential is False
        assert config.deployment.output_dir == Path.cwd() / "output"

    def test_token_lookup_order(self, clean_env):
        clean_env.setenv("GH_TOKEN", "from-gh")
        assert load_config_from_env().github_token == "from-gh"

        clean_env.setenv("GITHUB_TOKEN", "  from-github  ")
        assert load_config_from_env().github_token == "from-github"

    def test_blank_token_is_no_credential(self, clean_env):
        clean_env.setenv("GITHUB_TOKEN", "   ")
        config = load_config_from_env()
        assert config.github_token is None
        assert config.has_remote_credential is False

    def test_token_not_in_repr(self, clean_env):
        clean_env.setenv("GITHUB_TOKEN", "ghp_secret")
        assert "ghp_secret" not in repr(load_config_from_env())

    def test_values_from_env(self, clean_env, tmp_path):
        clean_env.setenv(ENV_DEFAULT_AUTO_OPEN, "true")
        clean_env.setenv(ENV_DEFAULT_OUTPUT_MODE, "IMAGE")
        clean_env.setenv(ENV_OUTPUT_DIR, str(tmp_path / "diffs"))
        clean_env.setenv(ENV_ENABLE_ACCESS_GATE, "1")
        clean_env.setenv(ENV_HTTP_TIMEOUT, "2.5")
        clean_env.setenv(ENV_LOG_LEVEL, "debug")

        config = load_config_from_env()

        assert config.default_auto_open is True
        assert config.default_output_mode == "image"
        assert config.deployment.output_dir == tmp_path / "diffs"
        assert config.enable_access_gate is True
        assert config.http_timeout == 2.5
        assert config.log_level == "DEBUG"

    def test_hosted_marker(self, clean_env):
        clean_env.setenv("VERCEL", "1")
        config = load_config_from_env()

        assert config.is_hosted is True
        assert config.hosted_detected_by == "VERCEL"
        assert config.deployment.output_dir == Path("/tmp/diffviz-output")

    @pytest.mark.parametrize(
        "name,value",
        [
            (ENV_DEFAULT_OUTPUT_MODE, "pdf"),
            (ENV_LOG_LEVEL, "LOUD"),
            (ENV_HTTP_TIMEOUT, "soon"),
            (ENV_RASTER_TIMEOUT, "0"),
        ],
    )
    def test_invalid_values(self, clean_env, name, value):
        clean_env.setenv(name, value)
        with pytest.raises(ValueError):
            load_config_from_env()


@pytest.mark.unit
class TestLoadConfig:
    """Tests for CLI parsing and load_config."""

    def test_cli_overrides_env(self, clean_env):
        clean_env.setenv(ENV_DEFAULT_AUTO_OPEN, "true")
        clean_env.setenv(ENV_DEFAULT_OUTPUT_MODE, "html")

        config = load_config(["--no-auto-open", "--output-mode", "image", "--log-level", "warning"])

        assert config.default_auto_open is False
        assert config.default_output_mode == "image"
        assert config.log_level == "WARNING"

    def test_hosted_flags(self, clean_env):
        clean_env.setenv("VERCEL", "1")
        config = load_config(["--no-hosted"])
        assert config.is_hosted is False
        assert config.hosted_detected_by == "--no-hosted"

        assert load_config(["--hosted"]).is_hosted is True

    def test_no_args_matches_env(self, clean_env):
        assert load_config([]) == load_config_from_env()

    def test_mutually_exclusive_flags(self, clean_env):
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(["--auto-open", "--no-auto-open"])

    def test_invalid_choice(self, clean_env):
        with pytest.raises(SystemExit):
            load_config(["--output-mode", "pdf"])

    def test_validate_rejects_plain_http_api(self, clean_env):
        with pytest.raises(ValueError, match="HTTPS"):
            load_config(["--gist-api-url", "http://api.github.com"])

    def test_validate_rejects_non_positive_timeout(self, clean_env):
        with pytest.raises(ValueError):
            load_config(["--http-timeout", "0"])


@pytest.mark.unit
class TestDiffvizConfig:
    """Tests for DiffvizConfig helpers."""

    def test_create_updated(self):
        config = DiffvizConfig()
        updated = config.create_updated(github_token="t")
        assert config.github_token is None
        assert updated.has_remote_credential is True

    def test_explicit_output_dir_expands_user(self):
        config = DiffvizConfig(output_dir="~/diffs")
        assert config.deployment.output_dir == Path("~/diffs").expanduser()

    def test_validate_rejects_unknown_mode(self):
        with pytest.raises(ValueError, match="Invalid output mode"):
            DiffvizConfig(default_output_mode="pdf").validate()  # type: ignore[arg-type]
