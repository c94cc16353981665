import pytest
from eth_utils import is_hex_address, keccak, to_checksum_address

from deployment.client import (
    ChainClient,
    ConfirmedContract,
    Factory,
    PendingContract,
    PendingTransaction,
    Signer,
)
from deployment.constants import TOKEN, TOKEN_PEG
from deployment.exceptions import ClientError
from deployment.plans import DeploymentPlan
from deployment.roles import role_id

# contract name -> roles granted by the constructor, as (role, constructor argument position)
CONSTRUCTOR_GRANTS = {
    "ThinkToken": [("MANAGER_ROLE", 0), ("MULTISIG_ROLE", 1)],
    "Token": [
        ("ROLES_MANAGER_ROLE", 0),
        ("TOKEN_CONTRACT_MANAGER_ROLE", 1),
        ("TOKEN_RECOVERY_MANAGER_ROLE", 2),
        ("MULTISIG_ROLE", 3),
    ],
    "TokenPeg": [("ROLES_MANAGER_ROLE", 2), ("PEG_MANAGER_ROLE", 3)],
    "Bridge": [],
    "ERC20Peg": [],
}

# contract name -> role required to call init
INIT_ROLES = {
    "ThinkToken": "MANAGER_ROLE",
    "Token": "ROLES_MANAGER_ROLE",
}

CHAIN_ID = 11155111


def make_address(seed: str) -> str:
    return to_checksum_address(keccak(text=seed)[-20:])


class FakeSigner(Signer):
    def __init__(self, address):
        self._address = to_checksum_address(address)

    @property
    def address(self):
        return self._address


class FakeTransaction(PendingTransaction):
    def __init__(self, error=None):
        self.error = error

    def await_confirmation(self):
        if self.error:
            raise ClientError(self.error)


class FakeContract(ConfirmedContract):
    def __init__(self, chain, name, address, args):
        self.chain = chain
        self._name = name
        self._address = address
        self.args = args
        self.grants = set()
        for role, position in CONSTRUCTOR_GRANTS.get(name, []):
            self.grants.add((bytes(role_id(role)), to_checksum_address(args[position])))
        self.peg = None

    @property
    def name(self):
        return self._name

    @property
    def address(self):
        return self._address

    def transact(self, method, args, sender):
        self.chain.log.append(("call", self.name, method, tuple(args), sender.address))
        if (self.name, method) in self.chain.failing_calls:
            return FakeTransaction(error=f"{self.name}.{method} reverted")
        if method != "init":
            return FakeTransaction(error=f"{self.name} has no method '{method}'")

        required_role = INIT_ROLES.get(self.name)
        if required_role and not self.has_role(bytes(role_id(required_role)), sender.address):
            return FakeTransaction(error=f"account {sender.address} is missing {required_role}")
        if self.peg is not None:
            return FakeTransaction(error="already initialized")
        self.peg = args[0]
        return FakeTransaction()

    def has_role(self, role_id, account):
        if self.name in self.chain.failing_role_queries:
            raise ClientError(f"hasRole query on {self.name} timed out")
        return (bytes(role_id), to_checksum_address(account)) in self.grants


class FakePendingContract(PendingContract):
    def __init__(self, chain, name, args):
        self.chain = chain
        self.name = name
        self.args = args

    def await_confirmation(self):
        if self.name in self.chain.failing_deployments:
            raise ClientError(f"{self.name} deployment reverted")
        # addresses only exist once the deployment is final
        self.chain.nonce += 1
        address = make_address(f"{self.name}:{self.chain.nonce}")
        contract = FakeContract(self.chain, self.name, address, self.args)
        self.chain.contracts[address] = contract
        self.chain.log.append(("confirmed", self.name, address))
        return contract


class FakeFactory(Factory):
    def __init__(self, chain, name):
        self.chain = chain
        self._name = name

    @property
    def name(self):
        return self._name

    def deploy(self, *args, sender):
        self.chain.log.append(("deploy", self.name, tuple(args), sender.address))
        return FakePendingContract(self.chain, self.name, args)


class InMemoryChain(ChainClient):
    """Chain client keeping contracts in memory and recording every interaction."""

    def __init__(self, keys=None, network="ethereum:sepolia"):
        self._network = network
        self.keys = dict(keys or {})
        self.contracts = dict()
        self.log = list()
        self.nonce = 0
        self.failing_deployments = set()
        self.failing_calls = set()
        self.failing_role_queries = set()
        self.factory_requests = list()

    @property
    def network(self):
        return self._network

    @property
    def chain_id(self):
        return CHAIN_ID

    def get_factory(self, name):
        self.factory_requests.append(name)
        if name not in CONSTRUCTOR_GRANTS:
            raise ClientError(f"No contract found with name '{name}'.")
        return FakeFactory(self, name)

    def signer(self, key):
        if is_hex_address(key):
            return FakeSigner(key)
        try:
            return FakeSigner(self.keys[key])
        except KeyError:
            raise ClientError(f"No account available for '{key}'")

    def default_signer(self):
        return FakeSigner(make_address("default"))

    def at(self, name, address):
        contract = self.contracts[to_checksum_address(address)]
        assert contract.name == name
        return contract

    def events(self, kind):
        return [event for event in self.log if event[0] == kind]


@pytest.fixture
def deployer():
    return make_address("deployer")


@pytest.fixture
def roles_manager():
    return make_address("roles-manager")


@pytest.fixture
def multisig():
    return make_address("multisig")


@pytest.fixture
def peg_manager():
    return make_address("peg-manager")


@pytest.fixture
def bridge():
    return make_address("bridge")


@pytest.fixture
def outsider():
    return make_address("outsider")


@pytest.fixture
def chain(deployer, roles_manager):
    return InMemoryChain(keys={"deployer-alias": deployer, "roles-manager-alias": roles_manager})


@pytest.fixture
def token_peg_env(roles_manager, multisig, peg_manager, bridge):
    return {
        "TEST_DEPLOYER_KEY": "deployer-alias",
        "TEST_ROLES_MANAGER_ADDRESS": roles_manager,
        "TEST_ROLES_MANAGER_KEY": "roles-manager-alias",
        "TEST_TOKEN_CONTRACT_MANAGER_ADDRESS": make_address("token-contract-manager"),
        "TEST_TOKEN_RECOVERY_MANAGER_ADDRESS": make_address("token-recovery-manager"),
        "TEST_MULTISIG_ADDRESS": multisig,
        "TEST_PEG_MANAGER_ADDRESS": peg_manager,
        "TEST_BRIDGE_ADDRESS": bridge,
    }


@pytest.fixture
def token_env(roles_manager, multisig, peg_manager):
    return {
        "MANAGER_ADDRESS": roles_manager,
        "MULTISIG_ADDRESS": multisig,
        "PEG_ADDRESS": make_address("peg"),
    }


@pytest.fixture
def token_peg_plan():
    return DeploymentPlan.load(TOKEN_PEG)


@pytest.fixture
def token_plan():
    return DeploymentPlan.load(TOKEN)


@pytest.fixture
def address_of():
    return make_address
