import os
from configparser import ConfigParser
from enum import Enum
from pathlib import Path
from typing import Any, Callable, ClassVar, Final, TypeVar

_CONFIG_FILE_PATH: Final = "private/config.ini"
_APP_ROOT_PATH: Final = Path(__file__).parent.parent.parent


class Option(Enum):
    """Enum of (section, property_key) options.

    Look up property in `os.environ`, fallback to config file file if missing.
    """

    APP_NAME = ("app", "name")
    APP_DESCRIPTION = ("app", "description")
    APP_VERSION = ("app", "version")
    API_VERSIONS = ("app", "api_versions")
    API_DOCS_PATH = ("app", "api_docs_path")
    SOCKET_ADDRESS = ("app", "socket_address")
    SOCKET_PORT = ("app", "socket_port")
    TLS_CERT_FILE = ("app", "tls_cert_file")
    TLS_KEY_FILE = ("app", "tls_key_file")

    LOG_LEVEL = ("log", "level")
    LOG_RICH_ENABLED = ("log", "rich_enabled")
    LOG_REQUESTS_ENABLED = ("log", "requests_enabled")

    K8S_KUBECONFIG_PATH = ("k8s", "kubeconfig_path")
    K8S_KUBECONFIG = ("k8s", "kubeconfig")
    K8S_CLIENT_CONFIGURATION = ("k8s", "client_configuration")
    K8S_REQUEST_TIMEOUT = ("k8s", "request_timeout")
    K8S_LIST_PAGE_SIZE = ("k8s", "list_page_size")

    SIDECAR_IMAGE = ("sidecar", "image")
    SIDECAR_ANNOTATION = ("sidecar", "annotation")
    SIDECAR_HOST_PATH_ROOT = ("sidecar", "host_path_root")
    SIDECAR_RESOURCE_GROUP = ("sidecar", "resource_group")
    SIDECAR_RESOURCE_VERSION = ("sidecar", "resource_version")
    SIDECAR_RESOURCE_PLURAL = ("sidecar", "resource_plural")

    def __str__(self) -> str:
        return f"{self.section}.{self.key}"

    def env_var(self) -> str:
        return str(self).upper().replace(".", "_")

    @property
    def section(self) -> str:
        """Get this option's section"""
        return self.value[0]

    @property
    def key(self) -> str:
        """Get this option's key"""
        return self.value[1]


_TRUE_VALUES: Final = {"1", "true", "yes", "on"}

T = TypeVar("T")


class Config:
    """Centrally manage application configuration properties.

    Values are looked up, in order, among programmatic overrides, environment variables
    (e.g. `SIDECAR_IMAGE` for `sidecar.image`) and `private/config.ini`.
    """

    _config_parser: ClassVar[ConfigParser | None] = None
    _overrides: ClassVar[dict[Option, Any]] = {}

    @classmethod
    def _parser(cls) -> ConfigParser:
        """Read the config file once, a missing file leaves every option to its default"""
        if cls._config_parser is None:
            cls._config_parser = ConfigParser()
            cls._config_parser.read(_APP_ROOT_PATH / _CONFIG_FILE_PATH, encoding="utf8")
        return cls._config_parser

    def set(self, option: Option, value: Any) -> None:
        """Override option value"""
        Config._overrides[option] = value

    def unset(self, option: Option) -> None:
        """Drop an overridden value"""
        Config._overrides.pop(option, None)

    def get(self, option: Option, default: Any = None) -> Any:
        """Get option value"""
        if Config._overrides.get(option) is not None:
            return Config._overrides[option]
        if option.env_var() in os.environ:
            return os.environ[option.env_var()]
        return self._parser().get(option.section, option.key, fallback=default)

    def get_bool(self, option: Option, default: bool = False) -> bool:
        value = self.get(option)
        if value is None or value == "":
            return default
        return str(value).strip().lower() in _TRUE_VALUES

    def get_as(self, option: Option, default: T, cast: Callable[[Any], T] = str) -> T:
        """Get option value converted by `cast`, `default` when unset.

        :raises ValueError: if the value cannot be converted.
        """
        value = self.get(option)
        if value is None or value == "":
            return default
        try:
            return cast(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid value '{value}' for option {option}") from exc
