import typing
from typing import Mapping, Optional, Union

from deployment.client import ChainClient
from deployment.config import resolve
from deployment.exceptions import ConfigError, DeploymentError
from deployment.plans import DeploymentPlan
from deployment.sequencer import DeploymentResult, Sequencer


class DeploymentOutcome(typing.NamedTuple):
    """Either the result of a completed run or the error that aborted it."""

    result: Optional[DeploymentResult] = None
    error: Optional[Union[ConfigError, DeploymentError]] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


def run_deployment(
    client: ChainClient,
    plan: DeploymentPlan,
    environ: Mapping[str, str],
    network: Optional[str] = None,
    confirm: bool = False,
) -> DeploymentOutcome:
    """
    Resolves the plan's configuration then runs the plan.

    Configuration errors are raised before the client is used at all.
    """
    network = network or client.network
    try:
        config = resolve(network=network, environ=environ, plan=plan)
        result = Sequencer(client=client, plan=plan, confirm=confirm).run(config)
    except (ConfigError, DeploymentError) as e:
        return DeploymentOutcome(error=e)
    return DeploymentOutcome(result=result)
