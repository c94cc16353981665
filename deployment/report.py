from typing import List

from deployment.constants import VERIFY_COMMAND
from deployment.exceptions import DeploymentError
from deployment.sequencer import DeployedContract, DeploymentResult


def verification_command(network: str, contract: DeployedContract) -> str:
    """
    Command line for the external verification tool.

    Constructor arguments follow the constructor order of the contract.
    """
    args = [str(arg) for arg in contract.args]
    return " ".join([VERIFY_COMMAND, "--network", network, contract.address, *args])


def verification_commands(result: DeploymentResult) -> List[str]:
    return [verification_command(result.network, contract) for contract in result.contracts]


def report(result: DeploymentResult) -> None:
    """Prints a human readable summary of a successful run."""
    print(f"\nDeployment '{result.plan}' on {result.network} (chain {result.chain_id})")
    for contract in result.contracts:
        print(f"- {contract.name}: {contract.address}")

    if result.link:
        args = ", ".join(str(arg) for arg in result.link.args)
        print(
            f"\nLinked {result.link.contract}.{result.link.method}({args}) "
            f"signed by {result.link.signer}"
        )

    if result.roles:
        print("\nRole verification:")
        for assignment in result.roles:
            print(
                f"- {assignment.contract}.{assignment.role} "
                f"granted to {assignment.account}: {assignment.granted}"
            )
            if assignment.error:
                print(f"  (!) not verified: {assignment.error}")

    print("\nDeployment Info for Verification:")
    for command in verification_commands(result):
        print(command)


def report_failure(error: DeploymentError) -> None:
    """Prints the contracts left on-chain by a failed run."""
    if not error.deployed:
        return
    print("\n(!) Contracts deployed before the failure remain on-chain:")
    for contract in error.deployed:
        print(f"- {contract.name}: {contract.address}")
