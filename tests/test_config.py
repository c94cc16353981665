import pytest

from deployment.config import (
    DeploymentConfig,
    NetworkClass,
    env_key,
    network_class,
    resolve,
    resolve_fields,
)
from deployment.exceptions import ConfigError


@pytest.mark.parametrize(
    "network,expected",
    [
        ("mainnet", NetworkClass.MAIN),
        ("ethereum:mainnet", NetworkClass.MAIN),
        ("ethereum:mainnet:infura", NetworkClass.MAIN),
        ("polygon:main", NetworkClass.MAIN),
        ("Ethereum:Mainnet", NetworkClass.MAIN),
        ("ethereum:sepolia:infura", NetworkClass.TEST),
        ("ethereum:local:test", NetworkClass.TEST),
        ("mainnet-fork", NetworkClass.TEST),
        ("", NetworkClass.TEST),
        (None, NetworkClass.TEST),
    ],
)
def test_network_class(network, expected):
    assert network_class(network) == expected


def test_env_key():
    assert env_key("roles_manager", NetworkClass.MAIN) == "MAIN_ROLES_MANAGER_ADDRESS"
    assert env_key("roles_manager", NetworkClass.TEST) == "TEST_ROLES_MANAGER_ADDRESS"
    assert env_key("roles_manager_key", NetworkClass.TEST) == "TEST_ROLES_MANAGER_KEY"
    assert env_key("deployer_key", NetworkClass.MAIN) == "MAIN_DEPLOYER_KEY"
    assert env_key("peg", NetworkClass.MAIN, prefixed=False) == "PEG_ADDRESS"
    assert env_key("manager", NetworkClass.TEST, prefixed=False) == "MANAGER_ADDRESS"

    with pytest.raises(ValueError):
        env_key("nonsense", NetworkClass.TEST)


def test_resolve_token_peg(token_peg_plan, token_peg_env, roles_manager, bridge):
    config = resolve("ethereum:sepolia", token_peg_env, token_peg_plan)

    assert isinstance(config, DeploymentConfig)
    assert config.network == "ethereum:sepolia"
    assert config.network_class == NetworkClass.TEST
    assert config.roles_manager == roles_manager
    assert config.bridge == bridge
    assert config.deployer_key == "deployer-alias"
    assert config.roles_manager_key == "roles-manager-alias"
    assert config.get("multisig") == token_peg_env["TEST_MULTISIG_ADDRESS"]

    # not part of the plan
    assert config.manager is None
    assert config.peg is None


def test_resolve_token_unprefixed(token_plan, token_env, roles_manager):
    config = resolve("ethereum:mainnet", token_env, token_plan)
    assert config.network_class == NetworkClass.MAIN
    assert config.manager == roles_manager
    assert config.peg == token_env["PEG_ADDRESS"]
    assert config.deployer_key is None


@pytest.mark.parametrize(
    "field,key",
    [
        ("deployer_key", "TEST_DEPLOYER_KEY"),
        ("roles_manager", "TEST_ROLES_MANAGER_ADDRESS"),
        ("roles_manager_key", "TEST_ROLES_MANAGER_KEY"),
        ("token_contract_manager", "TEST_TOKEN_CONTRACT_MANAGER_ADDRESS"),
        ("token_recovery_manager", "TEST_TOKEN_RECOVERY_MANAGER_ADDRESS"),
        ("multisig", "TEST_MULTISIG_ADDRESS"),
        ("peg_manager", "TEST_PEG_MANAGER_ADDRESS"),
        ("bridge", "TEST_BRIDGE_ADDRESS"),
    ],
)
def test_missing_field(token_peg_plan, token_peg_env, field, key):
    del token_peg_env[key]
    with pytest.raises(ConfigError) as error:
        resolve("ethereum:sepolia", token_peg_env, token_peg_plan)

    assert error.value.field == field
    assert error.value.key == key
    assert error.value.kind == ConfigError.MISSING_FIELD


def test_empty_value_is_missing(token_peg_plan, token_peg_env):
    token_peg_env["TEST_MULTISIG_ADDRESS"] = "  "
    with pytest.raises(ConfigError) as error:
        resolve("ethereum:sepolia", token_peg_env, token_peg_plan)
    assert error.value.field == "multisig"


def test_first_missing_field_is_reported(token_peg_plan, token_peg_env):
    del token_peg_env["TEST_BRIDGE_ADDRESS"]
    del token_peg_env["TEST_ROLES_MANAGER_ADDRESS"]
    with pytest.raises(ConfigError) as error:
        resolve("ethereum:sepolia", token_peg_env, token_peg_plan)
    assert error.value.field == "roles_manager"


def test_main_network_ignores_test_keys(token_peg_plan, token_peg_env):
    with pytest.raises(ConfigError) as error:
        resolve("ethereum:mainnet", token_peg_env, token_peg_plan)
    assert error.value.key == "MAIN_DEPLOYER_KEY"

    main_env = {key.replace("TEST_", "MAIN_"): value for key, value in token_peg_env.items()}
    config = resolve("ethereum:mainnet", main_env, token_peg_plan)
    assert config.network_class == NetworkClass.MAIN


def test_invalid_address(token_peg_plan, token_peg_env):
    token_peg_env["TEST_PEG_MANAGER_ADDRESS"] = "0x1234"
    with pytest.raises(ConfigError) as error:
        resolve("ethereum:sepolia", token_peg_env, token_peg_plan)
    assert error.value.field == "peg_manager"
    assert error.value.kind == ConfigError.INVALID_FIELD


def test_addresses_are_checksummed(address_of):
    multisig = address_of("multisig")
    config = resolve_fields(
        "ethereum:sepolia", {"TEST_MULTISIG_ADDRESS": multisig.lower()}, fields=["multisig"]
    )
    assert config.multisig == multisig


def test_key_fields_are_not_checksummed():
    config = resolve_fields("ethereum:sepolia", {"TEST_DEPLOYER_KEY": "alice"}, ["deployer_key"])
    assert config.deployer_key == "alice"


def test_config_is_immutable(token_peg_plan, token_peg_env):
    config = resolve("ethereum:sepolia", token_peg_env, token_peg_plan)
    with pytest.raises(AttributeError):
        config.multisig = config.bridge
