class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    exit_code = 1


class UnknownNetwork(DeploymentError, KeyError):
    """Raised when the requested network identifier is not registered."""

    exit_code = 2

    def __init__(self, identifier: str, known=()):
        self.identifier = identifier
        self.known = tuple(known)
        super().__init__(identifier)

    def __str__(self) -> str:
        message = f"Unknown network '{self.identifier}'"
        if self.known:
            message += f"; expected one of: {', '.join(self.known)}"
        return message


class ConfigurationError(DeploymentError, ValueError):
    """Raised when network or constructor parameters are missing or invalid."""

    exit_code = 3


class InvalidConstructorArguments(ConfigurationError):
    """Raised when constructor arguments do not match the contract's constructor ABI."""


class SubmissionFailed(DeploymentError):
    """Raised when the network rejects a contract creation transaction."""

    exit_code = 4


class ConfirmationTimeout(DeploymentError):
    """Raised when a submitted transaction is not included in time."""

    exit_code = 5

    def __init__(self, message: str, tx_hash: str = None):
        self.tx_hash = tx_hash
        super().__init__(message)
