from collections import OrderedDict

from deployment.constants import ZERO_ADDRESS
from deployment.exceptions import DeploymentAborted


def _declined(answer: str) -> bool:
    return answer.lower().strip() == "n"


def _confirm_deployment(contract_name: str) -> None:
    """Asks the user to confirm the deployment of a single contract."""
    answer = input(f"Deploy {contract_name} Y/N? ")
    if _declined(answer):
        raise DeploymentAborted(f"Deployment of {contract_name} declined")


def _confirm_zero_address(contract_name: str) -> None:
    answer = input("Zero Address detected for deployment parameter; Continue? Y/N? ")
    if _declined(answer):
        raise DeploymentAborted(f"Zero address parameter for {contract_name} declined")


def _confirm_link(contract_name: str, method: str, signer: str) -> None:
    answer = input(f"Call {contract_name}.{method} as {signer} Y/N? ")
    if _declined(answer):
        raise DeploymentAborted(f"{contract_name}.{method} declined")


def _confirm_resolution(resolved_params: OrderedDict, contract_name: str) -> None:
    """Asks the user to confirm the resolved constructor parameters for a single contract."""
    if len(resolved_params) == 0:
        print(f"\n(i) No constructor parameters for {contract_name}")
        _confirm_deployment(contract_name)
        return

    print(f"\nConstructor parameters for {contract_name}")
    contains_zero_address = False
    for name, resolved_value in resolved_params.items():
        print(f"\t{name}={resolved_value}")
        if not contains_zero_address:
            contains_zero_address = resolved_value == ZERO_ADDRESS
    _confirm_deployment(contract_name)
    if contains_zero_address:
        _confirm_zero_address(contract_name)
