class DeploymentError(Exception):
    """Base class for every error that aborts an orchestration run."""

    kind = "DeploymentError"


class DeploymentConfigError(DeploymentError, ValueError):
    """Raised when a deployment parameters file is malformed."""

    kind = "DeploymentConfigError"


class UnresolvedDependency(DeploymentError):
    """No deployment record and no static default exist for a logical name."""

    kind = "UnresolvedDependency"

    def __init__(self, name: str):
        super().__init__(f"Unable to resolve address for '{name}': not deployed and no default")
        self.name = name


class ImplementationPublishFailed(DeploymentError):
    kind = "ImplementationPublishFailed"


class InitializationFailed(DeploymentError):
    kind = "InitializationFailed"


class AlreadyInitializedMismatch(DeploymentError):
    kind = "AlreadyInitializedMismatch"


class NoCustodianConfigured(DeploymentError):
    kind = "NoCustodianConfigured"


class UnexpectedOwner(DeploymentError):
    """The component is owned by neither the deployer nor the target custodian."""

    kind = "UnexpectedOwner"


class LedgerError(Exception):
    """Raised by ledger implementations when an on-chain operation fails."""
