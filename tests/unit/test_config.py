"""Unit tests for client configuration."""

from pathlib import Path

import pytest

from wmipc.core.config import ClientConfig, ConfigurationError, find_config_file, load_config
from wmipc.ipc import CapabilityLevel


class TestClientConfig:
    """Tests for the configuration model."""

    def test_default_config(self) -> None:
        """Test default configuration values."""
        config = ClientConfig()
        assert config.capability == CapabilityLevel.I3_4_16
        assert config.socket_path is None
        assert config.receive_timeout is None
        assert config.log_level == "warning"

    def test_capability_from_string(self) -> None:
        """Test capability parsing from its release name."""
        config = ClientConfig(capability="sway-1.1")
        assert config.capability == CapabilityLevel.SWAY_1_1

    def test_unknown_capability(self) -> None:
        """Test rejection of unknown capability levels."""
        with pytest.raises(ValueError):
            ClientConfig(capability="i3-9.99")

    def test_log_level_normalized(self) -> None:
        """Test log level is case-insensitive."""
        assert ClientConfig(log_level="DEBUG").log_level == "debug"

    def test_invalid_log_level(self) -> None:
        """Test rejection of unknown log levels."""
        with pytest.raises(ValueError, match="log_level"):
            ClientConfig(log_level="chatty")

    def test_non_positive_timeout(self) -> None:
        """Test rejection of zero or negative timeouts."""
        with pytest.raises(ValueError, match="positive"):
            ClientConfig(receive_timeout=0)


class TestLoadConfig:
    """Tests for loading configuration files."""

    def test_config_file_not_found(self) -> None:
        """Test error when config file doesn't exist."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_config("/nonexistent/path.yaml")

    def test_load_full_config(self, tmp_path: Path) -> None:
        """Test loading every setting."""
        config_file = tmp_path / "wmipc.yaml"
        config_file.write_text("""
capability: i3-4.14
socket_path: /run/user/1000/i3/ipc.sock
connect_timeout: 2
receive_timeout: 1.5
log_level: info
""")

        config = load_config(config_file)

        assert config.capability == CapabilityLevel.I3_4_14
        assert config.socket_path == "/run/user/1000/i3/ipc.sock"
        assert config.connect_timeout == 2.0
        assert config.receive_timeout == 1.5
        assert config.log_level == "info"

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test error on an empty file."""
        config_file = tmp_path / "wmipc.yaml"
        config_file.write_text("")

        with pytest.raises(ConfigurationError, match="empty"):
            load_config(config_file)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test error on broken YAML syntax."""
        config_file = tmp_path / "wmipc.yaml"
        config_file.write_text("capability: [i3-4.14\n")

        with pytest.raises(ConfigurationError, match="YAML"):
            load_config(config_file)

    def test_invalid_values(self, tmp_path: Path) -> None:
        """Test error on values that fail validation."""
        config_file = tmp_path / "wmipc.yaml"
        config_file.write_text("capability: awesome-4.0\n")

        with pytest.raises(ConfigurationError, match="validation"):
            load_config(config_file)


class TestFindConfigFile:
    """Tests for config file discovery."""

    @pytest.fixture(autouse=True)
    def isolated(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("WMIPC_CONFIG", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

    def test_explicit_path(self, tmp_path: Path) -> None:
        """Test an explicit path is returned as-is."""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("log_level: debug\n")

        assert find_config_file(config_file) == config_file

    def test_explicit_path_missing(self, tmp_path: Path) -> None:
        """Test an explicit missing path is an error."""
        with pytest.raises(ConfigurationError):
            find_config_file(tmp_path / "missing.yaml")

    def test_environment_variable(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test $WMIPC_CONFIG is honoured."""
        config_file = tmp_path / "env.yaml"
        config_file.write_text("log_level: debug\n")
        monkeypatch.setenv("WMIPC_CONFIG", str(config_file))

        assert find_config_file() == config_file

    def test_current_directory_before_xdg(self, tmp_path: Path) -> None:
        """Test ./wmipc.yaml wins over the XDG config."""
        xdg_file = tmp_path / "xdg" / "wmipc" / "config.yaml"
        xdg_file.parent.mkdir(parents=True)
        xdg_file.write_text("log_level: info\n")

        assert find_config_file() == xdg_file

        (tmp_path / "wmipc.yaml").write_text("log_level: debug\n")
        assert find_config_file() == Path("wmipc.yaml")

    def test_nothing_found(self) -> None:
        """Test None is returned when no file exists."""
        assert find_config_file() is None
