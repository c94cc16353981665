#!/usr/bin/python3
import os

import click
from ape.cli import ConnectedProviderCommand, network_option

from deployment.ape_client import ApeClient
from deployment.exceptions import DeploymentError
from deployment.options import (
    autosign_option,
    confirm_option,
    plan_option,
    registry_filepath_option,
)
from deployment.plans import DeploymentPlan
from deployment.registry import registry_from_result
from deployment.report import report, report_failure
from deployment.utils import registry_filepath_from_plan
from deployment.workflow import run_deployment


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@plan_option
@registry_filepath_option
@confirm_option
@autosign_option
def cli(network, plan, registry_filepath, confirm, autosign):
    """
    Deploy the contracts of a plan, link them and verify their roles.

    ape run deploy --network ethereum:sepolia:infura --plan token-peg

    Addresses and signing keys are read from the environment,
    e.g. TEST_ROLES_MANAGER_ADDRESS or MAIN_DEPLOYER_KEY.
    """
    deployment_plan = DeploymentPlan.load(plan)
    client = ApeClient(autosign=autosign)
    outcome = run_deployment(
        client=client, plan=deployment_plan, environ=os.environ, confirm=confirm
    )

    if not outcome.ok:
        click.secho(f"Deployment failed: {outcome.error}", fg="red", err=True)
        if isinstance(outcome.error, DeploymentError):
            report_failure(outcome.error)
        raise SystemExit(outcome.exit_code)

    report(outcome.result)
    registry_from_result(
        outcome.result,
        output_filepath=registry_filepath or registry_filepath_from_plan(plan),
    )


if __name__ == "__main__":
    cli()
