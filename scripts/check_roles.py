#!/usr/bin/python3
import os

import click
from ape.cli import ConnectedProviderCommand, network_option

from deployment.ape_client import ApeClient
from deployment.config import resolve_fields
from deployment.options import plan_option, registry_filepath_option, role_account_option
from deployment.plans import DeploymentPlan
from deployment.registry import contracts_from_registry
from deployment.roles import check_plan_roles
from deployment.utils import registry_filepath_from_plan


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@plan_option
@registry_filepath_option
@role_account_option
def cli(network, plan, registry_filepath, accounts):
    """Report the roles a plan expects on its deployed contracts."""
    deployment_plan = DeploymentPlan.load(plan)
    client = ApeClient()
    registry_filepath = registry_filepath or registry_filepath_from_plan(plan)
    contracts = contracts_from_registry(registry_filepath, chain_id=client.chain_id, client=client)

    config = None
    if not accounts:
        config = resolve_fields(
            network=client.network,
            environ=os.environ,
            fields=deployment_plan.role_fields,
            prefixed=deployment_plan.prefixed,
        )

    assignments = check_plan_roles(deployment_plan, contracts, config=config, accounts=accounts)
    for assignment in assignments:
        color = "green" if assignment.granted else "yellow"
        click.secho(
            f"{assignment.contract}.{assignment.role} ({assignment.role_id.hex()}) "
            f"granted to {assignment.account}: {assignment.granted}",
            fg=color,
        )
        if assignment.error:
            click.secho(f"  not verified: {assignment.error}", fg="red")


if __name__ == "__main__":
    cli()
