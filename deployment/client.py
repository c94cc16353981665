"""
Chain client interface used by the sequencer and the role verifier.

Transport, gas and broadcasting live behind these classes; see
``deployment.ape_client`` for the ape-backed implementation.
"""

from abc import ABC, abstractmethod
from typing import Any

from eth_typing import ChecksumAddress


class Signer(ABC):
    @property
    @abstractmethod
    def address(self) -> ChecksumAddress:
        raise NotImplementedError


class PendingTransaction(ABC):
    @abstractmethod
    def await_confirmation(self) -> None:
        """Blocks until the transaction is final; raises ClientError if it failed."""
        raise NotImplementedError


class ConfirmedContract(ABC):
    """A deployed contract whose address is final."""

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def address(self) -> ChecksumAddress:
        raise NotImplementedError

    @abstractmethod
    def transact(self, method: str, args: tuple, sender: Signer) -> PendingTransaction:
        raise NotImplementedError

    @abstractmethod
    def has_role(self, role_id: bytes, account: ChecksumAddress) -> bool:
        raise NotImplementedError

    def connect(self, signer: Signer) -> "ConnectedContract":
        return ConnectedContract(contract=self, signer=signer)


class ConnectedContract:
    """A confirmed contract bound to the signer of its next calls."""

    def __init__(self, contract: ConfirmedContract, signer: Signer):
        self.contract = contract
        self.signer = signer

    def call(self, method: str, *args: Any) -> PendingTransaction:
        return self.contract.transact(method, args, sender=self.signer)


class PendingContract(ABC):
    @abstractmethod
    def await_confirmation(self) -> ConfirmedContract:
        """Blocks until the deployment is final; raises ClientError if it failed."""
        raise NotImplementedError


class Factory(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def deploy(self, *args: Any, sender: Signer) -> PendingContract:
        raise NotImplementedError


class ChainClient(ABC):
    @property
    @abstractmethod
    def network(self) -> str:
        """Network choice the client is connected to."""
        raise NotImplementedError

    @property
    @abstractmethod
    def chain_id(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def get_factory(self, name: str) -> Factory:
        raise NotImplementedError

    @abstractmethod
    def signer(self, key: str) -> Signer:
        """Returns the signer for a configured signing key."""
        raise NotImplementedError

    @abstractmethod
    def default_signer(self) -> Signer:
        """Returns the signer used when a plan names no deployer key."""
        raise NotImplementedError

    @abstractmethod
    def at(self, name: str, address: ChecksumAddress) -> ConfirmedContract:
        """Returns an already deployed contract."""
        raise NotImplementedError
