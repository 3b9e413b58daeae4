"""Custom exceptions for the aws-auth mapping store.

Exception Hierarchy:
    AuthMapError (base)
    ├── IdentityValidationError (ValueError)
    │   ├── ARNParseError
    │   └── ARNClassificationError
    ├── MappingDecodeError (ValueError)
    ├── MappingEncodeError (ValueError)
    ├── MappingNotFoundError (LookupError)
    │   ├── IdentityNotFoundError
    │   └── AccountNotFoundError
    └── MappingPersistenceError (ConnectionError)
        └── MappingAccessDeniedError (PermissionError)

Example:
    >>> from eks_authmap.errors import ARNParseError
    >>> raise ARNParseError("arn:aws:iam")
    ARNParseError: Malformed ARN 'arn:aws:iam': expected at least 6 colon-separated segments
"""

from __future__ import annotations


class AuthMapError(Exception):
    """Base exception for all mapping store errors.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)


class IdentityValidationError(AuthMapError, ValueError):
    """Raised when an identity cannot be accepted into the store."""


class ARNParseError(IdentityValidationError):
    """Raised when an identifier has fewer than six colon-separated segments.

    Attributes:
        arn: The raw identifier that failed to parse.
    """

    def __init__(self, arn: str) -> None:
        """Initialize the exception.

        Args:
            arn: The raw identifier that failed to parse.
        """
        self.arn = arn
        message = f"Malformed ARN {arn!r}: expected at least 6 colon-separated segments"
        AuthMapError.__init__(self, message)


class ARNClassificationError(IdentityValidationError):
    """Raised when an ARN is neither an IAM role nor an IAM user.

    Attributes:
        arn: The offending ARN.
        resource_type: The resource-type text that failed classification.
    """

    def __init__(self, arn: str, *, resource_type: str) -> None:
        """Initialize the exception.

        Args:
            arn: The offending ARN.
            resource_type: The resource-type text found in the ARN.
        """
        self.arn = arn
        self.resource_type = resource_type
        message = (
            f"ARN {arn!r} has resource type {resource_type!r}; "
            "expected 'role' or 'user'"
        )
        AuthMapError.__init__(self, message)


class MappingDecodeError(AuthMapError, ValueError):
    """Raised when a stored ConfigMap key does not hold the expected YAML shape.

    Attributes:
        key: The ConfigMap data key being decoded (e.g. "mapRoles").
        reason: Description of the underlying decode failure.
    """

    def __init__(self, key: str, *, reason: str) -> None:
        """Initialize the exception.

        Args:
            key: The ConfigMap data key being decoded.
            reason: Description of the underlying decode failure.
        """
        self.key = key
        self.reason = reason
        AuthMapError.__init__(self, f"Unmarshalling {key!r}: {reason}")


class MappingEncodeError(AuthMapError, ValueError):
    """Raised when the identity list cannot be split back into roles and users.

    Attributes:
        key: The ConfigMap data key being written.
        arn: The ARN of the record that could not be encoded.
        reason: Why encoding failed.
    """

    def __init__(self, key: str, *, arn: str = "", reason: str) -> None:
        """Initialize the exception.

        Args:
            key: The ConfigMap data key being written.
            arn: The ARN of the record that could not be encoded.
            reason: Why encoding failed.
        """
        self.key = key
        self.arn = arn
        self.reason = reason
        message = f"Marshalling {key!r}: {reason}"
        if arn:
            message = f"{message} (arn={arn!r})"
        AuthMapError.__init__(self, message)


class MappingNotFoundError(AuthMapError, LookupError):
    """Raised when a removal targets an entry absent from the mapping."""


class IdentityNotFoundError(MappingNotFoundError):
    """Raised when no identity mapping exists for an ARN.

    Attributes:
        arn: The ARN that was looked up.
    """

    def __init__(self, arn: str) -> None:
        self.arn = arn
        AuthMapError.__init__(self, f"Identity ARN {arn!r} not found in auth ConfigMap")


class AccountNotFoundError(MappingNotFoundError):
    """Raised when an account is absent from mapAccounts.

    Attributes:
        account: The account ID that was looked up.
    """

    def __init__(self, account: str) -> None:
        self.account = account
        AuthMapError.__init__(self, f"Account {account!r} not found in auth ConfigMap")


class MappingPersistenceError(AuthMapError, ConnectionError):
    """Raised when reading or writing the ConfigMap through the K8s API fails.

    This exception inherits from both AuthMapError and ConnectionError,
    allowing it to be caught by either exception type.

    Attributes:
        operation: The API operation that failed ("read", "create", "replace").
        name: ConfigMap name.
        namespace: ConfigMap namespace.
        reason: Additional context about the failure.
        status: HTTP status returned by the API server, if any.

    Example:
        >>> raise MappingPersistenceError(
        ...     "replace",
        ...     name="aws-auth",
        ...     namespace="kube-system",
        ...     reason="Conflict",
        ...     status=409,
        ... )
    """

    def __init__(
        self,
        operation: str,
        *,
        name: str = "",
        namespace: str = "",
        reason: str = "",
        status: int | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            operation: The API operation that failed.
            name: ConfigMap name.
            namespace: ConfigMap namespace.
            reason: Additional context about the failure.
            status: HTTP status returned by the API server, if any.
        """
        self.operation = operation
        self.name = name
        self.namespace = namespace
        self.reason = reason
        self.status = status
        message = f"Failed to {operation} auth ConfigMap"
        if name:
            message = f"{message} '{namespace}/{name}'" if namespace else f"{message} '{name}'"
        if status is not None:
            message = f"{message} (HTTP {status})"
        if reason:
            message = f"{message}: {reason}"
        AuthMapError.__init__(self, message)


class MappingAccessDeniedError(MappingPersistenceError, PermissionError):
    """Raised when the API server forbids access to the ConfigMap."""


__all__ = [
    "ARNClassificationError",
    "ARNParseError",
    "AccountNotFoundError",
    "AuthMapError",
    "IdentityNotFoundError",
    "IdentityValidationError",
    "MappingAccessDeniedError",
    "MappingDecodeError",
    "MappingEncodeError",
    "MappingNotFoundError",
    "MappingPersistenceError",
]
