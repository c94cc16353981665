from pathlib import Path

import click

from deployment.constants import SUPPORTED_PLANS
from deployment.types import ChecksumAddress

plan_option = click.option(
    "--plan",
    "-p",
    help="Deployment plan to run.",
    type=click.Choice(SUPPORTED_PLANS),
    required=True,
)

registry_filepath_option = click.option(
    "--registry-filepath",
    "-f",
    help="Registry artifact; defaults to the plan's artifact file.",
    type=click.Path(dir_okay=False, path_type=Path),
    required=False,
)

confirm_option = click.option(
    "--confirm/--no-confirm",
    help="Ask before each deployment and before the link call.",
    default=False,
)

autosign_option = click.option(
    "--autosign",
    help="Sign transactions without prompting.",
    is_flag=True,
    default=False,
)

role_account_option = click.option(
    "--account",
    "-a",
    "accounts",
    help="Check the roles for these accounts instead of the configured ones.",
    type=ChecksumAddress(),
    multiple=True,
    required=False,
)
