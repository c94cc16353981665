import typing
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from eth_typing import ChecksumAddress
from eth_utils import keccak, to_checksum_address
from hexbytes import HexBytes

from deployment.client import ConfirmedContract
from deployment.constants import ZERO_ADDRESS
from deployment.exceptions import ClientError
from deployment.plans import DeploymentPlan, ResolutionState


class RoleAssignment(typing.NamedTuple):
    """Observed state of a single (role, account) pair on a deployed contract."""

    contract: str
    role: str
    role_id: HexBytes
    account: ChecksumAddress
    granted: bool
    error: Optional[str] = None


def role_id(role: str) -> HexBytes:
    """Canonical access-control identifier of a role, keccak256 of its utf-8 name."""
    return HexBytes(keccak(text=role))


def verify(
    contract: ConfirmedContract, expected: Iterable[Tuple[str, str]]
) -> List[RoleAssignment]:
    """
    Queries whether each (role, account) pair is granted on the contract.

    Read-only: nothing is granted or revoked, and a missing grant is
    reported as ``granted=False`` rather than raised. A query the client
    cannot answer is reported the same way, with its ``error``.
    """
    assignments = list()
    for role, account in expected:
        account = to_checksum_address(account)
        identifier = role_id(role)
        error = None
        try:
            granted = bool(contract.has_role(bytes(identifier), account))
        except ClientError as e:
            granted, error = False, str(e)
        assignments.append(
            RoleAssignment(
                contract=contract.name,
                role=role,
                role_id=identifier,
                account=account,
                granted=granted,
                error=error,
            )
        )
    return assignments


def check_plan_roles(
    plan: DeploymentPlan,
    contracts: Dict[str, ConfirmedContract],
    config=None,
    deployer: str = ZERO_ADDRESS,
    accounts: Sequence[str] = (),
) -> List[RoleAssignment]:
    """
    Verifies the roles a plan expects on its deployed contracts.

    With ``accounts``, every expected role is checked against those
    accounts instead of the configured ones.
    """
    addresses = {name: contract.address for name, contract in contracts.items()}
    state = ResolutionState(config=config, deployer=deployer, addresses=addresses)
    assignments = list()
    for contract_name, expected_roles in plan.roles.items():
        if contract_name not in contracts:
            raise ValueError(f"No deployed {contract_name} to verify roles on")
        if accounts:
            expected = [(role, account) for role, _ in expected_roles for account in accounts]
        else:
            expected = plan.resolve_roles(contract_name, state)
        assignments.extend(verify(contracts[contract_name], expected))
    return assignments
