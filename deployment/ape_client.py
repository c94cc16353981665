from typing import Any, Optional

from ape import accounts, networks, project
from ape.api import AccountAPI, ReceiptAPI
from ape.cli.choices import select_account
from ape.contracts import ContractContainer, ContractInstance
from ape.exceptions import ApeException
from ape_accounts import KeyfileAccount
from eth_typing import ChecksumAddress
from eth_utils import is_hex_address, to_checksum_address
from web3.auto import w3

from deployment.client import (
    ChainClient,
    ConfirmedContract,
    Factory,
    PendingContract,
    PendingTransaction,
    Signer,
)
from deployment.exceptions import ClientError


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container


def _validate_constructor_args(container: ContractContainer, args: tuple) -> None:
    """Validates constructor arguments against the constructor ABI."""
    contract_name = container.contract_type.name
    abi_inputs = container.constructor.abi.inputs
    if len(args) != len(abi_inputs):
        raise ClientError(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(args)}."
        )
    for position, (abi_input, value) in enumerate(zip(abi_inputs, args)):
        if not w3.is_encodable(abi_input.type, value):
            raise ClientError(
                f"{contract_name} constructor parameter '{abi_input.name}' at position "
                f"{position} has a value '{value}' whose type does not match "
                f"expected ABI type '{abi_input.type}'"
            )


class ApeSigner(Signer):
    def __init__(self, account: AccountAPI):
        self.account = account

    @property
    def address(self) -> ChecksumAddress:
        return to_checksum_address(self.account.address)


class ApeTransaction(PendingTransaction):
    def __init__(self, receipt: ReceiptAPI):
        self.receipt = receipt

    def await_confirmation(self) -> None:
        try:
            self.receipt.await_confirmations()
        except ApeException as e:
            raise ClientError(str(e)) from e
        if self.receipt.failed:
            raise ClientError(f"Transaction {self.receipt.txn_hash} failed")


class ApeContract(ConfirmedContract):
    def __init__(self, instance: ContractInstance):
        self.instance = instance

    @property
    def name(self) -> str:
        return self.instance.contract_type.name

    @property
    def address(self) -> ChecksumAddress:
        return to_checksum_address(self.instance.address)

    def transact(self, method: str, args: tuple, sender: Signer) -> PendingTransaction:
        try:
            handler = getattr(self.instance, method)
            receipt = handler(*args, sender=sender.account)
        except AttributeError:
            raise ClientError(f"{self.name} has no method '{method}'")
        except ApeException as e:
            raise ClientError(str(e)) from e
        return ApeTransaction(receipt)

    def has_role(self, role_id: bytes, account: ChecksumAddress) -> bool:
        try:
            return self.instance.hasRole(role_id, account)
        except ApeException as e:
            raise ClientError(str(e)) from e


class ApePendingContract(PendingContract):
    def __init__(self, instance: ContractInstance):
        self.instance = instance

    def await_confirmation(self) -> ConfirmedContract:
        receipt = self.instance.receipt
        try:
            receipt.await_confirmations()
        except ApeException as e:
            raise ClientError(str(e)) from e
        if receipt.failed:
            raise ClientError(f"Deployment transaction {receipt.txn_hash} failed")
        return ApeContract(self.instance)


class ApeFactory(Factory):
    def __init__(self, container: ContractContainer, publish: bool = False):
        self.container = container
        self.publish = publish

    @property
    def name(self) -> str:
        return self.container.contract_type.name

    def deploy(self, *args: Any, sender: Signer) -> PendingContract:
        _validate_constructor_args(self.container, args)
        try:
            instance = sender.account.deploy(self.container, *args, publish=self.publish)
        except ApeException as e:
            raise ClientError(str(e)) from e
        return ApePendingContract(instance)


class ApeClient(ChainClient):
    """
    Chain client backed by the connected ape provider and project.

    Signing keys are ape account aliases. On local networks a plain
    address is accepted as well and impersonated by the provider.
    """

    def __init__(self, network: Optional[str] = None, autosign: bool = False):
        self._network = network
        self.autosign = autosign
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")

    @property
    def network(self) -> str:
        return self._network or networks.provider.network.choice

    @property
    def chain_id(self) -> int:
        return networks.provider.chain_id

    def get_factory(self, name: str) -> Factory:
        try:
            container = get_contract_container(name)
        except ValueError as e:
            raise ClientError(str(e)) from e
        return ApeFactory(container)

    def _wrap(self, account: AccountAPI) -> Signer:
        if isinstance(account, KeyfileAccount):
            account.set_autosign(self.autosign)
        return ApeSigner(account)

    def signer(self, key: str) -> Signer:
        try:
            if is_hex_address(key):
                account = accounts[to_checksum_address(key)]
            else:
                account = accounts.load(key)
        except (ApeException, IndexError, KeyError) as e:
            raise ClientError(f"No account available for '{key}': {e}") from e
        return self._wrap(account)

    def default_signer(self) -> Signer:
        return self._wrap(select_account())

    def at(self, name: str, address: ChecksumAddress) -> ConfirmedContract:
        try:
            container = get_contract_container(name)
            return ApeContract(container.at(address))
        except (ApeException, ValueError) as e:
            raise ClientError(str(e)) from e
