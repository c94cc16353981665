import typing
from collections import OrderedDict
from typing import List, Optional

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from deployment.client import ChainClient, ConfirmedContract, Signer
from deployment.config import DeploymentConfig
from deployment.confirm import _confirm_link, _confirm_resolution
from deployment.constants import ZERO_ADDRESS
from deployment.exceptions import ClientError, DeploymentFailure, LinkageFailure
from deployment.plans import DeploymentPlan, ResolutionState, UnconfirmedContract
from deployment.roles import RoleAssignment, check_plan_roles


class DeployedContract:
    """One contract instance of a run; its address is absent until confirmed."""

    def __init__(self, name: str, constructor_args: OrderedDict, deployer: ChecksumAddress):
        self.name = name
        self.constructor_args = constructor_args
        self.deployer = deployer
        self.instance: Optional[ConfirmedContract] = None

    @property
    def address(self) -> Optional[ChecksumAddress]:
        if self.instance is None:
            return None
        return self.instance.address

    @property
    def pending(self) -> bool:
        return self.instance is None

    @property
    def args(self) -> list:
        return list(self.constructor_args.values())

    def confirm(self, instance: ConfirmedContract) -> None:
        if self.instance is not None:
            raise ValueError(f"{self.name} is already confirmed at {self.address}")
        if not instance.address or instance.address == ZERO_ADDRESS:
            raise ValueError(f"{self.name} was confirmed without an address")
        self.instance = instance

    def __repr__(self):
        return f"<DeployedContract {self.name} at {self.address or 'pending'}>"


class LinkRecord(typing.NamedTuple):
    contract: str
    method: str
    args: list
    signer: ChecksumAddress


class DeploymentResult(typing.NamedTuple):
    network: str
    chain_id: int
    plan: str
    deployer: ChecksumAddress
    contracts: List[DeployedContract]
    link: Optional[LinkRecord]
    roles: List[RoleAssignment]

    @property
    def addresses(self) -> "OrderedDict[str, ChecksumAddress]":
        return OrderedDict((contract.name, contract.address) for contract in self.contracts)


class Sequencer:
    """
    Deploys the contracts of a plan one after the other, then links them.

    Every deployment is confirmed before the next one starts, and the link
    call is only sent once all contracts are confirmed. The first failure
    aborts the run; contracts confirmed before it stay deployed.
    """

    def __init__(self, client: ChainClient, plan: DeploymentPlan, confirm: bool = False):
        self.client = client
        self.plan = plan
        self.confirm = confirm

    def run(self, config: DeploymentConfig) -> DeploymentResult:
        deployer = self._get_deployer(config)
        print(
            f"Plan: {self.plan.name}",
            f"Network: {config.network} ({config.network_class.name})",
            f"Deployer: {deployer.address}",
            sep="\n",
        )

        deployed: "OrderedDict[str, DeployedContract]" = OrderedDict()
        for contract_name in self.plan.contracts:
            deployed[contract_name] = self._deploy(contract_name, config, deployer, deployed)

        link = None
        if self.plan.link:
            link = self._link(config, deployer, deployed)

        roles = self._verify_roles(config, deployer, deployed)
        return DeploymentResult(
            network=config.network,
            chain_id=self.client.chain_id,
            plan=self.plan.name,
            deployer=deployer.address,
            contracts=list(deployed.values()),
            link=link,
            roles=roles,
        )

    def _state(self, config, deployer: Signer, deployed) -> ResolutionState:
        addresses = {
            name: contract.address for name, contract in deployed.items() if not contract.pending
        }
        return ResolutionState(config=config, deployer=deployer.address, addresses=addresses)

    def _get_deployer(self, config: DeploymentConfig) -> Signer:
        try:
            if self.plan.deployer:
                return self.client.signer(config.get(self.plan.deployer))
            return self.client.default_signer()
        except ClientError as e:
            raise DeploymentFailure(f"Could not load the deployer account: {e}", cause=e)

    def _deploy(self, contract_name: str, config, deployer: Signer, deployed) -> DeployedContract:
        confirmed = list(deployed.values())
        try:
            resolved_params = self.plan.resolve_constructor(
                contract_name, self._state(config, deployer, deployed)
            )
        except UnconfirmedContract as e:
            raise DeploymentFailure(
                f"Cannot deploy {contract_name}: {e}", cause=e, deployed=confirmed
            )

        if self.confirm:
            _confirm_resolution(resolved_params, contract_name)

        contract = DeployedContract(
            name=contract_name, constructor_args=resolved_params, deployer=deployer.address
        )
        print(f"\nDeploying {contract_name}...")
        try:
            factory = self.client.get_factory(contract_name)
            pending = factory.deploy(*contract.args, sender=deployer)
            instance = pending.await_confirmation()
            contract.confirm(instance)
        except (ClientError, ValueError) as e:
            raise DeploymentFailure(
                f"Deployment of {contract_name} failed: {e}", cause=e, deployed=confirmed
            )

        print(f"{contract_name} deployed to: {contract.address}")
        return contract

    def _link(self, config, deployer: Signer, deployed) -> LinkRecord:
        link = self.plan.link
        contracts = list(deployed.values())
        target = deployed[self.plan.primary]
        expected_signer = config.get(link.signer)
        try:
            args = self.plan.resolve_link_args(self._state(config, deployer, deployed))
            key = config.get(link.signer_key) if link.signer_key else expected_signer
            signer = self.client.signer(key)
        except (UnconfirmedContract, ClientError) as e:
            raise LinkageFailure(
                f"Cannot call {link.contract}.{link.method}: {e}", cause=e, deployed=contracts
            )

        if to_checksum_address(signer.address) != to_checksum_address(expected_signer):
            raise LinkageFailure(
                f"{link.contract}.{link.method} must be signed by {link.signer} "
                f"({expected_signer}), got {signer.address}",
                deployed=contracts,
            )

        if self.confirm:
            _confirm_link(link.contract, link.method, signer.address)

        pretty_args = ", ".join(str(arg) for arg in args)
        print(f"\nTransacting {link.contract}[{target.address[:10]}].{link.method}({pretty_args})")
        try:
            transaction = target.instance.connect(signer).call(link.method, *args)
            transaction.await_confirmation()
        except ClientError as e:
            raise LinkageFailure(
                f"{link.contract}.{link.method} failed: {e}", cause=e, deployed=contracts
            )

        print(f"{link.contract} initialized with {pretty_args}")
        return LinkRecord(
            contract=link.contract, method=link.method, args=args, signer=signer.address
        )

    def _verify_roles(self, config, deployer: Signer, deployed) -> List[RoleAssignment]:
        contracts = {name: contract.instance for name, contract in deployed.items()}
        return check_plan_roles(self.plan, contracts, config=config, deployer=deployer.address)
