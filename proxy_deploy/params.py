import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, Optional

from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from proxy_deploy.constants import DEFAULT_INITIALIZER
from proxy_deploy.errors import DeploymentConfigError
from proxy_deploy.utils import _load_yaml, get_artifact_filepath, get_external_directories

COMPONENT_PROXY_KEY = "proxy"
COMPONENT_DEPENDENCIES_KEY = "dependencies"
PROXY_CONTRACT_TYPE_KEY = "contract_type"
PROXY_INITIALIZER_KEY = "initializer"


class VariableContext:
    def __init__(
        self,
        component_name: str,
        dependencies: List[str],
        constants: typing.Dict[str, Any] = None,
    ):
        self.component_name = component_name
        self.dependencies = dependencies or list()
        self.constants = constants or dict()


class ResolutionContext(typing.NamedTuple):
    """Run-time values that initializer variables resolve against."""

    deployer: ChecksumAddress
    dependencies: typing.Mapping[str, ChecksumAddress]


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    @abstractmethod
    def resolve(self, context: ResolutionContext) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        return isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self, context: ResolutionContext) -> Any:
        return context.deployer

    def __repr__(self):
        return "$deployer"


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            self.constant_value = context.constants[constant_name]
        except KeyError:
            raise DeploymentConfigError(
                f"Constant '{constant_name}' not found in deployment file."
            )
        self.constant_name = constant_name

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self, context: ResolutionContext) -> Any:
        return self.constant_value

    def __repr__(self):
        return f"${self.constant_name}"


class DependencyAddress(Variable):
    def __init__(self, dependency_name: str, context: VariableContext):
        if dependency_name not in context.dependencies:
            raise DeploymentConfigError(
                f"'{dependency_name}' is not a declared dependency of {context.component_name}"
            )
        self.dependency_name = dependency_name

    def resolve(self, context: ResolutionContext) -> Any:
        return context.dependencies[self.dependency_name]

    def __repr__(self):
        return f"${self.dependency_name}"


def _variable_from_value(variable: str, context: VariableContext) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount()
    elif variable in context.dependencies:
        return DependencyAddress(variable, context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return DependencyAddress(variable, context)


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _resolve_param(value: Any, context: ResolutionContext) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, context) for v in value]

    if isinstance(value, Variable):
        return value.resolve(context)

    return value  # literally a value


class Initializer(typing.NamedTuple):
    """The one-time initialization call executed through the proxy."""

    method: str
    args: List[Any]

    def resolve(self, context: ResolutionContext) -> List[Any]:
        return [_resolve_param(arg, context) for arg in self.args]


class ComponentSpec(typing.NamedTuple):
    """A single proxied component as declared in a parameters file."""

    name: str
    contract_type: str
    dependencies: List[str]
    initializer: Initializer


class CustodyParameters(typing.NamedTuple):
    governance: Optional[str]
    multisig: Optional[ChecksumAddress]


def _checksum(value: Any, field: str) -> ChecksumAddress:
    if not isinstance(value, str) or not is_address(value):
        raise DeploymentConfigError(f"'{field}' is not a valid address: {value}")
    return to_checksum_address(value)


def _parse_component(
    contract_info: Any, constants: Dict[str, Any]
) -> ComponentSpec:
    if isinstance(contract_info, str):
        raise DeploymentConfigError(
            f"Component '{contract_info}' must declare proxy parameters."
        )
    if not isinstance(contract_info, dict) or len(contract_info) != 1:
        raise DeploymentConfigError("Malformed components section in parameters YAML.")

    name = list(contract_info.keys())[0]  # only one entry
    component_data = contract_info[name] or dict()
    if COMPONENT_PROXY_KEY not in component_data:
        raise DeploymentConfigError(f"Component '{name}' must declare proxy parameters.")

    dependencies = list(component_data.get(COMPONENT_DEPENDENCIES_KEY) or list())
    if len(set(dependencies)) != len(dependencies):
        raise DeploymentConfigError(f"Duplicate dependencies declared for '{name}'.")

    proxy_data = component_data[COMPONENT_PROXY_KEY] or dict()
    contract_type = proxy_data.get(PROXY_CONTRACT_TYPE_KEY, name)
    initializer_data = proxy_data.get(PROXY_INITIALIZER_KEY) or dict()
    raw_args = initializer_data.get("args") or list()
    if not isinstance(raw_args, list):
        raise DeploymentConfigError(f"Initializer args for '{name}' must be a list.")

    variable_context = VariableContext(
        component_name=name, dependencies=dependencies, constants=constants
    )
    initializer = Initializer(
        method=initializer_data.get("method", DEFAULT_INITIALIZER),
        args=[_process_raw_value(arg, variable_context) for arg in raw_args],
    )
    return ComponentSpec(
        name=name,
        contract_type=contract_type,
        dependencies=dependencies,
        initializer=initializer,
    )


def validate_config(config: Dict) -> None:
    """Checks the top-level structure of a deployment parameters file."""
    print("Validating parameters YAML...")
    if not isinstance(config, dict):
        raise DeploymentConfigError("Parameters YAML must be a mapping.")

    deployment = config.get("deployment")
    if not deployment:
        raise DeploymentConfigError("deployment is not set in params file.")
    if not deployment.get("chain_id"):
        raise DeploymentConfigError("chain_id is not set in params file.")

    if not config.get("components"):
        raise DeploymentConfigError("Parameters file missing 'components' field.")

    constants = config.get("constants") or dict()
    for name in constants:
        if not name.isupper():
            raise DeploymentConfigError(f"Constant '{name}' must be upper case.")


class DeploymentParameters:
    """Represents the deployment parameters of one network, loaded from YAML."""

    def __init__(self, config: Dict, path: Optional[Path] = None):
        validate_config(config)
        self.config = config
        self.path = path

        deployment = config["deployment"]
        self.name = deployment.get("name", "")
        self.chain_id = int(deployment["chain_id"])
        self.records_filepath = get_artifact_filepath(config)
        self.external_directories = get_external_directories(config)
        self.constants = dict(config.get("constants") or dict())

        defaults = config.get("defaults") or dict()
        self.defaults = OrderedDict(
            (name, _checksum(address, f"defaults.{name}")) for name, address in defaults.items()
        )

        custody = config.get("custody") or dict()
        multisig = custody.get("multisig")
        self.custody = CustodyParameters(
            governance=custody.get("governance"),
            multisig=_checksum(multisig, "custody.multisig") if multisig else None,
        )

        self.components = OrderedDict()
        for contract_info in config["components"]:
            spec = _parse_component(contract_info, self.constants)
            if spec.name in self.components:
                raise DeploymentConfigError(f"Component '{spec.name}' declared twice.")
            self.components[spec.name] = spec

    @classmethod
    def from_yaml(cls, filepath: Path) -> "DeploymentParameters":
        config = _load_yaml(filepath)
        return cls(config=config, path=filepath)

    def component(self, name: str) -> ComponentSpec:
        try:
            return self.components[name]
        except KeyError:
            raise DeploymentConfigError(f"Component '{name}' is not declared in {self.path}.")
