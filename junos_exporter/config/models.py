"""Pydantic configuration models for the exporter."""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..errors import ConfigError
from ..utils.metrics import metric_key_name, sanitize_name

DEFAULT_TIMEOUT = 20
DEFAULT_NETCONF_PORT = 830

# Label every interface sample already carries
INTERFACE_LABEL = "interface"


def _family_name(name: str) -> str:
    """Counter families drop the "_total" suffix, so "x" and "x_total" are the same family."""
    return name[:-len("_total")] if name.endswith("_total") else name


def _check_unique(keys: List[str], to_name: Callable[[str], str], field: str,
                  reserved: Iterable[str] = ()) -> List[str]:
    seen: Dict[str, str] = {}
    for key in keys:
        name = to_name(key)
        if name in reserved:
            raise ValueError(f'{field} key "{key}" clashes with the built-in "{name}"')
        if name in seen:
            raise ValueError(f'{field} keys "{seen[name]}" and "{key}" both map to "{name}"')
        seen[name] = key
    return keys


class FeatureKeys(BaseModel):
    """Optional per-feature key lists shared by profiles and the global section."""
    interface_description_keys: List[str] = Field(default_factory=list)
    interface_metric_keys: List[str] = Field(default_factory=list)
    bgp_peer_type_keys: List[str] = Field(default_factory=list)

    @field_validator('interface_description_keys')
    @classmethod
    def validate_description_keys(cls, v: List[str]) -> List[str]:
        """Each key becomes a label of junos_interface_description."""
        return _check_unique(v, sanitize_name, 'interface_description_keys', reserved=(INTERFACE_LABEL,))

    @field_validator('interface_metric_keys')
    @classmethod
    def validate_metric_keys(cls, v: List[str]) -> List[str]:
        return _check_unique(v, lambda key: _family_name(metric_key_name(key)), 'interface_metric_keys')


class ProfileConfig(FeatureKeys):
    """Credentials and collection options for one named profile."""
    username: str
    password: Optional[str] = None
    ssh_key: Optional[str] = None
    timeout: Optional[int] = Field(default=None, gt=0)
    allowed_targets: List[str] = Field(default_factory=list)
    enabled_collectors: List[str]

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not v:
            raise ValueError('missing username')
        return v

    @field_validator('enabled_collectors')
    @classmethod
    def validate_collectors(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError('no collectors enabled')
        return v

    @model_validator(mode='after')
    def require_credentials(self) -> "ProfileConfig":
        """Either a password or an SSH key must be configured."""
        if not self.password and not self.ssh_key:
            raise ValueError('missing password or ssh_key')
        return self


class GlobalConfig(FeatureKeys):
    """Fallback values shared by all profiles."""
    allowed_targets: List[str] = Field(default_factory=list)
    timeout: Optional[int] = Field(default=None, gt=0)


class TargetConfig(BaseModel):
    """Everything a scrape needs for one device. Built per request."""
    model_config = ConfigDict(frozen=True)

    target: str
    host: str
    port: int = DEFAULT_NETCONF_PORT
    username: str
    password: Optional[str] = None
    ssh_key: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT
    enabled_collectors: Tuple[str, ...] = ()
    interface_description_keys: Tuple[str, ...] = ()
    interface_metric_keys: Tuple[str, ...] = ()
    bgp_peer_type_keys: Tuple[str, ...] = ()


def split_target(target: str) -> Tuple[str, int]:
    """
    Split "host", "host:port" or "[v6addr]:port" into host and port.

    A bare IPv6 address without brackets is treated as a host with the default port.

    Raises:
        ConfigError: If the port is not a number
    """
    if target.startswith('['):
        host, _, rest = target[1:].partition(']')
        port = rest[1:] if rest.startswith(':') else ''
    elif target.count(':') == 1:
        host, port = target.split(':')
    else:
        host, port = target, ''

    if not port:
        return host, DEFAULT_NETCONF_PORT
    if not port.isdigit():
        raise ConfigError(f'invalid port in target "{target}"')
    return host, int(port)


class ExporterConfig(BaseModel):
    """Root configuration loaded from YAML."""
    model_config = ConfigDict(populate_by_name=True)

    configs: Dict[str, ProfileConfig] = Field(default_factory=dict)
    global_config: GlobalConfig = Field(default_factory=GlobalConfig, alias='global')

    def check_collectors(self, valid_collectors: List[str]) -> None:
        """
        Reject profiles that enable collectors the exporter does not provide.

        Raises:
            ConfigError: On the first unknown collector name
        """
        for name, profile in self.configs.items():
            for collector in profile.enabled_collectors:
                if collector not in valid_collectors:
                    raise ConfigError(f'invalid collector "{collector}" in "{name}" configuration')

    def check_interface_metric_keys(self, builtin_metrics: Iterable[str]) -> None:
        """
        Reject interface metric keys that would shadow a metric the interface collector declares.

        Args:
            builtin_metrics: Interface metric names without the "junos_interface_" prefix

        Raises:
            ConfigError: On the first clashing key
        """
        builtin = {_family_name(name) for name in builtin_metrics}
        sections = [("global", self.global_config)] + list(self.configs.items())
        for name, section in sections:
            for key in section.interface_metric_keys:
                if _family_name(metric_key_name(key)) in builtin:
                    raise ConfigError(
                        f'interface metric key "{key}" in "{name}" configuration clashes with a built-in metric'
                    )

    def validate_request(self, config: Optional[str], target: Optional[str]) -> None:
        """
        Check the query parameters of a scrape request.

        Args:
            config: Profile name from the request
            target: Device address from the request

        Raises:
            ConfigError: With the message returned to the HTTP client
        """
        if not config:
            raise ConfigError("'config' parameter must be specified")
        if config not in self.configs:
            raise ConfigError(f'could not find "{config}" config in configuration file')
        if not target:
            raise ConfigError("'target' parameter must be specified")

        profile = self.configs[config]
        if profile.allowed_targets:
            if target not in profile.allowed_targets:
                raise ConfigError(
                    f'allowed_targets is defined under "{config}" configuration but "{target}" is not listed'
                )
        elif self.global_config.allowed_targets and target not in self.global_config.allowed_targets:
            raise ConfigError(
                f'allowed_targets is defined under global configuration but "{target}" is not listed'
            )

    def target_config(self, config: str, target: str) -> TargetConfig:
        """
        Build the scrape configuration for one request.

        Timeout falls back from the profile to the global section and then to
        20 seconds; key lists fall back to the global lists when empty.
        """
        profile = self.configs[config]
        glob = self.global_config
        host, port = split_target(target)
        return TargetConfig(
            target=target,
            host=host,
            port=port,
            username=profile.username,
            password=profile.password,
            ssh_key=profile.ssh_key,
            timeout=profile.timeout or glob.timeout or DEFAULT_TIMEOUT,
            enabled_collectors=tuple(profile.enabled_collectors),
            interface_description_keys=tuple(
                profile.interface_description_keys or glob.interface_description_keys
            ),
            interface_metric_keys=tuple(profile.interface_metric_keys or glob.interface_metric_keys),
            bgp_peer_type_keys=tuple(profile.bgp_peer_type_keys or glob.bgp_peer_type_keys),
        )
