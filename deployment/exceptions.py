"""Exceptions raised while planning, configuring and running a deployment."""

from typing import List, Optional


class PlanError(ValueError):
    """Raised when a deployment plan file is malformed."""

    pass


class ConfigError(ValueError):
    """Raised when a field required by the active plan is missing or invalid."""

    MISSING_FIELD = "MissingField"
    INVALID_FIELD = "InvalidField"

    def __init__(self, field: str, key: str, kind: str = MISSING_FIELD):
        self.field = field
        self.key = key
        self.kind = kind
        if kind == self.MISSING_FIELD:
            message = f"Missing required field '{field}' (environment variable {key})"
        else:
            message = f"Invalid value for field '{field}' (environment variable {key})"
        super().__init__(message)


class ClientError(Exception):
    """Raised by a chain client when a deployment or transaction does not confirm."""

    pass


class DeploymentError(Exception):
    """
    Base exception for on-chain failures during a run.

    Contracts confirmed before the failure are not rolled back;
    they are attached as ``deployed`` so that they can be reported.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None, deployed=None):
        super().__init__(message)
        self.cause = cause
        self.deployed: List = list(deployed or [])


class DeploymentFailure(DeploymentError):
    """Raised when a contract deployment did not confirm."""

    pass


class LinkageFailure(DeploymentError):
    """Raised when the cross-link initialization call did not confirm."""

    pass


class DeploymentAborted(DeploymentError):
    """Raised when the operator declines a confirmation prompt."""

    pass
