"""Tests for ssrgate.config — GatewayConfig frozen dataclass."""

import pytest

from ssrgate.config import GatewayConfig
from ssrgate.errors import ConfigurationError


class TestGatewayConfig:
    def test_defaults(self) -> None:
        cfg = GatewayConfig()

        assert cfg.override_origin is None
        assert cfg.host_header is None
        assert cfg.protocol_header is None
        assert cfg.ip_header is None
        assert cfg.xff_depth == 1
        assert cfg.host == "localhost"
        assert cfg.port == 3000
        assert cfg.unix_socket is None
        assert cfg.timeout is None
        assert cfg.dev is False
        assert cfg.app_dir == "_app"

    def test_frozen(self) -> None:
        cfg = GatewayConfig()

        with pytest.raises(AttributeError):
            cfg.dev = True  # type: ignore[misc]

    def test_header_names_lowercased(self) -> None:
        cfg = GatewayConfig(
            host_header="X-Forwarded-Host",
            protocol_header=" X-Forwarded-Proto ",
            ip_header="X-Forwarded-For",
        )
        assert cfg.host_header == "x-forwarded-host"
        assert cfg.protocol_header == "x-forwarded-proto"
        assert cfg.ip_header == "x-forwarded-for"
        assert cfg.uses_forwarded_for is True

    def test_other_ip_header_is_not_forwarded_for(self) -> None:
        assert GatewayConfig(ip_header="CF-Connecting-IP").uses_forwarded_for is False


class TestValidation:
    @pytest.mark.parametrize(
        "origin", ["example.com", "ftp://example.com", "https://", "/relative/path"]
    )
    def test_bad_origin(self, origin: str) -> None:
        with pytest.raises(ConfigurationError, match="override_origin"):
            GatewayConfig(override_origin=origin)

    def test_good_origin(self) -> None:
        cfg = GatewayConfig(override_origin="https://example.com:8443")
        assert cfg.override_origin == "https://example.com:8443"

    @pytest.mark.parametrize("depth", [0, -1])
    def test_non_positive_xff_depth(self, depth: int) -> None:
        with pytest.raises(ConfigurationError, match="xff_depth"):
            GatewayConfig(xff_depth=depth)

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_port_out_of_range(self, port: int) -> None:
        with pytest.raises(ConfigurationError, match="port"):
            GatewayConfig(port=port)

    def test_non_positive_timeout(self) -> None:
        with pytest.raises(ConfigurationError, match="timeout"):
            GatewayConfig(timeout=0)


class TestFromEnv:
    def test_empty_environment_gives_defaults(self) -> None:
        assert GatewayConfig.from_env({}) == GatewayConfig()

    def test_reads_prefixed_variables(self) -> None:
        cfg = GatewayConfig.from_env(
            {
                "SSRGATE_ORIGIN": "ignored",
                "SSRGATE_OVERRIDE_ORIGIN": "https://example.com",
                "SSRGATE_IP_HEADER": "X-Forwarded-For",
                "SSRGATE_XFF_DEPTH": "3",
                "SSRGATE_PORT": "8080",
                "SSRGATE_TIMEOUT": "2.5",
                "SSRGATE_DEV": "true",
                "SSRGATE_SOCKET": "ignored",
                "SSRGATE_UNIX_SOCKET": "/tmp/gw.sock",
            }
        )
        assert cfg.override_origin == "https://example.com"
        assert cfg.ip_header == "x-forwarded-for"
        assert cfg.xff_depth == 3
        assert cfg.port == 8080
        assert cfg.timeout == 2.5
        assert cfg.dev is True
        assert cfg.unix_socket == "/tmp/gw.sock"

    def test_blank_variable_keeps_default(self) -> None:
        assert GatewayConfig.from_env({"SSRGATE_PORT": ""}).port == 3000

    def test_custom_prefix(self) -> None:
        cfg = GatewayConfig.from_env({"APP_HOST": "0.0.0.0"}, prefix="APP_")
        assert cfg.host == "0.0.0.0"

    def test_invalid_number(self) -> None:
        with pytest.raises(ConfigurationError, match="SSRGATE_XFF_DEPTH"):
            GatewayConfig.from_env({"SSRGATE_XFF_DEPTH": "two"})

    def test_validation_still_applies(self) -> None:
        with pytest.raises(ConfigurationError, match="xff_depth"):
            GatewayConfig.from_env({"SSRGATE_XFF_DEPTH": "0"})
