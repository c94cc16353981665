import json
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, NamedTuple

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from deployment.client import ChainClient, ConfirmedContract
from deployment.sequencer import DeploymentResult
from deployment.utils import _load_json

ChainId = int
ContractName = str


STANDARD_REGISTRY_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class RegistryEntry(NamedTuple):
    """Represents a single deployed contract in a registry artifact."""

    chain_id: ChainId
    name: ContractName
    address: ChecksumAddress
    constructor_args: list
    deployer: str
    plan: str


def _get_entries(result: DeploymentResult) -> List[RegistryEntry]:
    """Returns a list of registry entries from the contracts of a run."""
    entries = list()
    for contract in result.contracts:
        entry = RegistryEntry(
            chain_id=result.chain_id,
            name=contract.name,
            address=to_checksum_address(contract.address),
            constructor_args=contract.args,
            deployer=contract.deployer,
            plan=result.plan,
        )
        entries.append(entry)
    return entries


def read_registry(filepath: Path) -> List[RegistryEntry]:
    data = _load_json(filepath)
    registry_entries = list()
    for chain_id, entries in data.items():
        for contract_name, artifacts in entries.items():
            registry_entry = RegistryEntry(
                chain_id=int(chain_id),
                name=contract_name,
                address=artifacts["address"],
                constructor_args=artifacts["constructor_args"],
                deployer=artifacts["deployer"],
                plan=artifacts["plan"],
            )
            registry_entries.append(registry_entry)
    return registry_entries


def write_registry(entries: List[RegistryEntry], filepath: Path, silent: bool = False) -> Path:
    """Writes a registry artifact, keyed by chain id then contract name."""

    if not entries:
        print("No entries provided.")
        return filepath

    # Sort registry entries to enforce common order
    entries.sort(key=lambda entry: (str(entry.chain_id), entry.name))

    data = defaultdict(dict)
    for entry in entries:
        data[str(entry.chain_id)][entry.name] = {
            "address": entry.address,
            "constructor_args": [str(arg) for arg in entry.constructor_args],
            "deployer": entry.deployer,
            "plan": entry.plan,
        }

    # Create the parent directory if it does not exist
    filepath.parent.mkdir(parents=True, exist_ok=True)

    # If the file already exists, attempt to merge the data, if not create a new file
    if filepath.exists():
        if not silent:
            print(f"Updating existing registry at {filepath}.")
        existing_data = _load_json(filepath)

        if any(chain_id in existing_data for chain_id in data):
            filepath = filepath.with_suffix(".unmerged.json")
            if not silent:
                print(
                    "Cannot merge registries with overlapping chain IDs.\n"
                    f"Writing to {filepath} to avoid overwriting existing data."
                )
        else:
            existing_data.update(data)
            data = existing_data
    elif not silent:
        print(f"Creating new registry at {filepath}.")

    with open(filepath, "w") as file:
        json.dump(data, file, **STANDARD_REGISTRY_JSON_FORMAT)

    return filepath


def registry_from_result(result: DeploymentResult, output_filepath: Path) -> Path:
    """Records the contracts of a successful run in a registry artifact."""
    entries = _get_entries(result)
    output_filepath = write_registry(entries=entries, filepath=output_filepath)
    print(f"(i) Registry written to {output_filepath}!")
    return output_filepath


def contracts_from_registry(
    filepath: Path, chain_id: ChainId, client: ChainClient
) -> Dict[ContractName, ConfirmedContract]:
    """Returns the contracts of a registry artifact deployed on the given chain."""
    deployments = dict()
    for registry_entry in read_registry(filepath=filepath):
        if registry_entry.chain_id != chain_id:
            continue
        deployments[registry_entry.name] = client.at(registry_entry.name, registry_entry.address)
    return deployments
