import typing
from enum import Enum
from typing import Iterable, Mapping, Optional

from eth_utils import is_address, to_checksum_address

from deployment.constants import (
    ADDRESS_SUFFIX,
    CONFIG_FIELDS,
    KEY_SUFFIX,
    MAIN_NETWORK_NAMES,
    MAIN_PREFIX,
    TEST_PREFIX,
)
from deployment.exceptions import ConfigError


class NetworkClass(Enum):
    MAIN = MAIN_PREFIX
    TEST = TEST_PREFIX

    @property
    def prefix(self) -> str:
        return self.value


def network_class(network: str) -> NetworkClass:
    """Selects the network class for a network choice such as 'ethereum:mainnet:infura'."""
    segments = [segment.strip().lower() for segment in (network or "").split(":")]
    if any(segment in MAIN_NETWORK_NAMES for segment in segments):
        return NetworkClass.MAIN
    return NetworkClass.TEST


def is_key_field(field: str) -> bool:
    try:
        return CONFIG_FIELDS[field]
    except KeyError:
        raise ValueError(f"Unknown configuration field '{field}'")


def env_key(field: str, network: NetworkClass, prefixed: bool = True) -> str:
    """
    Returns the environment variable name holding a configuration field.

    roles_manager -> MAIN_ROLES_MANAGER_ADDRESS (prefixed, main network class)
    deployer_key  -> TEST_DEPLOYER_KEY          (prefixed, test network class)
    peg           -> PEG_ADDRESS                (unprefixed)
    """
    if is_key_field(field):
        name = field.upper()
        if not name.endswith(KEY_SUFFIX):
            name += KEY_SUFFIX
    else:
        name = field.upper() + ADDRESS_SUFFIX
    if prefixed:
        name = network.prefix + name
    return name


class DeploymentConfig(typing.NamedTuple):
    """Resolved per-network configuration; fields the active plan does not need stay None."""

    network: str
    network_class: NetworkClass
    deployer_key: Optional[str] = None
    manager: Optional[str] = None
    roles_manager: Optional[str] = None
    roles_manager_key: Optional[str] = None
    token_contract_manager: Optional[str] = None
    token_recovery_manager: Optional[str] = None
    multisig: Optional[str] = None
    peg_manager: Optional[str] = None
    peg: Optional[str] = None
    bridge: Optional[str] = None

    def get(self, field: str) -> Optional[str]:
        is_key_field(field)
        return getattr(self, field)


def _ordered(fields: Iterable[str]) -> typing.List[str]:
    requested = set(fields)
    for field in requested:
        is_key_field(field)
    return [field for field in CONFIG_FIELDS if field in requested]


def resolve_fields(
    network: str,
    environ: Mapping[str, str],
    fields: Iterable[str],
    prefixed: bool = True,
) -> DeploymentConfig:
    """
    Looks up every requested field, all or nothing.

    Raises ConfigError for the first (in field order) missing or invalid field.
    """
    network_cls = network_class(network)
    values = dict()
    for field in _ordered(fields):
        key = env_key(field, network_cls, prefixed=prefixed)
        value = (environ.get(key) or "").strip()
        if not value:
            raise ConfigError(field=field, key=key)
        if not is_key_field(field):
            if not is_address(value):
                raise ConfigError(field=field, key=key, kind=ConfigError.INVALID_FIELD)
            value = to_checksum_address(value)
        values[field] = value

    return DeploymentConfig(network=network, network_class=network_cls, **values)


def resolve(network: str, environ: Mapping[str, str], plan) -> DeploymentConfig:
    """Resolves the configuration needed by a deployment plan."""
    return resolve_fields(
        network=network,
        environ=environ,
        fields=plan.required_fields,
        prefixed=plan.prefixed,
    )
