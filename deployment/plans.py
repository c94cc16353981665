import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, Optional

from deployment.constants import (
    CONFIG_FIELDS,
    CONSTRUCTOR_PARAMS_DIR,
    DEPLOYER_VARIABLE,
    ZERO_ADDRESS,
)
from deployment.exceptions import PlanError
from deployment.utils import _load_yaml

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"


class VariableContext:
    def __init__(self, contract_names: List[str], contract_name: str):
        # contracts that are confirmed by the time the variable is resolved
        self.contract_names = contract_names or list()
        self.contract_name = contract_name


class ResolutionState(typing.NamedTuple):
    """What a variable may resolve against at a given point of a run."""

    config: Any
    deployer: str
    addresses: Dict[str, str]


class UnconfirmedContract(LookupError):
    """Raised when a variable references a contract without a confirmed address."""


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self, state: ResolutionState) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class DeployerAccount(Variable):
    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is the special deployer variable."""
        return value == DEPLOYER_VARIABLE

    def resolve(self, state: ResolutionState) -> Any:
        return state.deployer

    def __repr__(self):
        return f"${DEPLOYER_VARIABLE}"


class ConfigField(Variable):
    def __init__(self, field: str):
        self.field = field

    @classmethod
    def is_config_field(cls, value: str) -> bool:
        """Returns True if the variable names a configuration field."""
        return value in CONFIG_FIELDS

    def resolve(self, state: ResolutionState) -> Any:
        return state.config.get(self.field)

    def __repr__(self):
        return f"${self.field}"


class ContractName(Variable):
    def __init__(self, contract_name: str, context: VariableContext):
        if contract_name not in context.contract_names:
            raise PlanError(
                f"Contract '{contract_name}' referenced by {context.contract_name} "
                "is not deployed before it"
            )
        self.contract_name = contract_name

    def resolve(self, state: ResolutionState) -> Any:
        """Resolves a contract address."""
        address = state.addresses.get(self.contract_name)
        if not address or address == ZERO_ADDRESS:
            raise UnconfirmedContract(f"{self.contract_name} has no confirmed address")
        return address

    def __repr__(self):
        return f"${self.contract_name}"


def _resolve_param(value: Any, state: ResolutionState) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, state) for v in value]

    if isinstance(value, Variable):
        return value.resolve(state)

    return value  # literally a value


def _resolve_params(parameters: OrderedDict, state: ResolutionState) -> OrderedDict:
    resolved_parameters = OrderedDict()
    for name, value in parameters.items():
        resolved_parameters[name] = _resolve_param(value, state)

    return resolved_parameters


def _variable_from_value(variable: str, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount()
    elif ConfigField.is_config_field(variable):
        return ConfigField(variable)
    else:
        return ContractName(variable, context)


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _process_raw_values(values: Dict, variable_context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = _process_raw_value(value, variable_context)

    return processed_parameters


def _config_fields(value: Any) -> List[str]:
    """Returns the configuration fields a processed value depends on."""
    if isinstance(value, list):
        return [field for v in value for field in _config_fields(v)]
    if isinstance(value, ConfigField):
        return [value.field]
    return []


def _get_contract_names(config: typing.Dict) -> List[str]:
    contract_names = list()
    for contract_info in config["contracts"]:
        if isinstance(contract_info, str):
            contract_names.append(contract_info)
        elif isinstance(contract_info, dict) and len(contract_info) == 1:
            contract_names.extend(list(contract_info.keys()))
        else:
            raise PlanError("Malformed contracts section.")

    if len(set(contract_names)) != len(contract_names):
        raise PlanError("Each contract can only be deployed once per plan.")
    return contract_names


def _check_field(field: Optional[str], what: str) -> None:
    if field is not None and field not in CONFIG_FIELDS:
        raise PlanError(f"Unknown configuration field '{field}' for {what}.")


class LinkCall(typing.NamedTuple):
    """The post-deploy initialization call wiring the contracts together."""

    contract: str
    method: str
    signer: str
    signer_key: Optional[str]
    args: List[Any]


class DeploymentPlan:
    """
    Which contracts to deploy, in which order and with which arguments,
    how to link them once deployed and which roles to expect afterwards.
    """

    def __init__(
        self,
        name: str,
        contracts: OrderedDict,
        link: Optional[LinkCall] = None,
        roles: Optional[OrderedDict] = None,
        deployer: Optional[str] = None,
        prefixed: bool = True,
    ):
        if not contracts:
            raise PlanError(f"Plan '{name}' has no contracts to deploy.")
        _check_field(deployer, "the deployer")

        self.name = name
        self.contracts = contracts
        self.link = link
        self.roles = roles or OrderedDict()
        self.deployer = deployer
        self.prefixed = prefixed

    @classmethod
    def from_config(cls, config: typing.Dict) -> "DeploymentPlan":
        if not isinstance(config, dict):
            raise PlanError("Malformed plan file.")
        deployment = config.get("deployment") or dict()
        name = deployment.get("name")
        if not name:
            raise PlanError("deployment name is not set in plan file.")
        if not config.get("contracts"):
            raise PlanError(f"Plan '{name}' is missing the 'contracts' field.")

        contract_names = _get_contract_names(config)
        contracts = OrderedDict()
        for position, contract_info in enumerate(config["contracts"]):
            if isinstance(contract_info, str):
                contracts[contract_info] = OrderedDict()
                continue

            contract_name = list(contract_info.keys())[0]  # only one entry
            contract_data = contract_info[contract_name] or dict()
            parameters = contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY) or dict()
            if not isinstance(parameters, dict):
                raise PlanError(f"Malformed constructor parameters for {contract_name}.")
            contracts[contract_name] = _process_raw_values(
                parameters,
                VariableContext(
                    contract_names=contract_names[:position], contract_name=contract_name
                ),
            )

        link = cls._process_link(config.get("link"), contract_names)
        roles = cls._process_roles(config.get("roles"), contract_names)
        return cls(
            name=name,
            contracts=contracts,
            link=link,
            roles=roles,
            deployer=deployment.get("deployer"),
            prefixed=deployment.get("prefixed", True),
        )

    @classmethod
    def from_yaml(cls, filepath: Path) -> "DeploymentPlan":
        if not filepath.exists():
            raise PlanError(f"No plan file found at {filepath}")
        return cls.from_config(_load_yaml(filepath))

    @classmethod
    def load(cls, name: str) -> "DeploymentPlan":
        """Loads one of the bundled plans by name."""
        filepath = CONSTRUCTOR_PARAMS_DIR / f"{name.replace('-', '_')}.yml"
        return cls.from_yaml(filepath)

    @staticmethod
    def _process_link(link_data: Optional[Dict], contract_names: List[str]) -> Optional[LinkCall]:
        if not link_data:
            return None

        contract = link_data.get("contract")
        if contract not in contract_names:
            raise PlanError(f"Link contract '{contract}' is not part of the plan.")
        method = link_data.get("method")
        if not method:
            raise PlanError("Link method is not set.")
        signer = link_data.get("signer")
        if signer is None:
            raise PlanError("Link signer is not set.")
        signer_key = link_data.get("signer_key")
        _check_field(signer, "the link signer")
        _check_field(signer_key, "the link signing key")

        context = VariableContext(contract_names=contract_names, contract_name=contract)
        args = [_process_raw_value(arg, context) for arg in link_data.get("args") or list()]
        return LinkCall(
            contract=contract, method=method, signer=signer, signer_key=signer_key, args=args
        )

    @staticmethod
    def _process_roles(roles_data: Optional[Dict], contract_names: List[str]) -> OrderedDict:
        roles = OrderedDict()
        for contract_name, assignments in (roles_data or dict()).items():
            if contract_name not in contract_names:
                raise PlanError(f"Roles declared for unknown contract '{contract_name}'.")
            context = VariableContext(contract_names=contract_names, contract_name=contract_name)
            expected = list()
            for assignment in assignments or list():
                if not isinstance(assignment, dict) or len(assignment) != 1:
                    raise PlanError(f"Malformed role assignment for {contract_name}.")
                role, account = list(assignment.items())[0]
                expected.append((role, _process_raw_value(account, context)))
            roles[contract_name] = expected
        return roles

    @property
    def primary(self) -> str:
        """The contract that receives the link call, or the first deployed one."""
        if self.link:
            return self.link.contract
        return list(self.contracts)[0]

    @property
    def required_fields(self) -> List[str]:
        """Configuration fields this plan cannot run without, in field order."""
        fields = set()
        if self.deployer:
            fields.add(self.deployer)
        for parameters in self.contracts.values():
            for value in parameters.values():
                fields.update(_config_fields(value))
        if self.link:
            fields.add(self.link.signer)
            if self.link.signer_key:
                fields.add(self.link.signer_key)
            fields.update(_config_fields(self.link.args))
        fields.update(self.role_fields)
        return [field for field in CONFIG_FIELDS if field in fields]

    @property
    def role_fields(self) -> List[str]:
        """Configuration fields holding the accounts of the expected roles."""
        fields = set()
        for expected in self.roles.values():
            for _, account in expected:
                fields.update(_config_fields(account))
        return [field for field in CONFIG_FIELDS if field in fields]

    def resolve_constructor(self, contract_name: str, state: ResolutionState) -> OrderedDict:
        """Resolves the constructor parameters for a single contract."""
        return _resolve_params(self.contracts[contract_name], state)

    def resolve_link_args(self, state: ResolutionState) -> List[Any]:
        return [_resolve_param(arg, state) for arg in self.link.args]

    def resolve_roles(self, contract_name: str, state: ResolutionState) -> List[tuple]:
        return [
            (role, _resolve_param(account, state)) for role, account in self.roles[contract_name]
        ]
