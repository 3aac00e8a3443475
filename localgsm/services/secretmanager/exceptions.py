"""
Secret Manager Exceptions.

Google-consistent exception types for Secret Manager operations.

Author: LocalGSM Team
Date: 2026-10-19
"""


class SecretManagerError(Exception):
    """Base exception for Secret Manager errors.

    Attributes:
        message: Human-readable error message
        status: Canonical status name (e.g. 'NOT_FOUND')
        code: HTTP status code the error maps to
    """

    status: str = "INTERNAL"
    code: int = 500

    def __init__(self, message: str, status: str = None, code: int = None):
        """Initialize Secret Manager error.

        Args:
            message: Error message
            status: Canonical status name (defaults to the class status)
            code: HTTP status code (defaults to the class code)
        """
        super().__init__(message)
        self.message = message
        self.status = status or self.__class__.status
        self.code = code or self.__class__.code

    def to_dict(self) -> dict:
        """Convert exception to the API error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "status": self.status,
            }
        }


class SecretNotFoundError(SecretManagerError):
    """Raised when a secret is not found."""

    status = "NOT_FOUND"
    code = 404

    def __init__(self, project_id: str, secret_id: str):
        """Initialize secret not found error.

        Args:
            project_id: Owning project
            secret_id: Secret identifier
        """
        message = f"Secret [projects/{project_id}/secrets/{secret_id}] not found."
        super().__init__(message)
        self.project_id = project_id
        self.secret_id = secret_id


class SecretVersionNotFoundError(SecretManagerError):
    """Raised when a version is absent under an existing secret."""

    status = "NOT_FOUND"
    code = 404

    def __init__(self, project_id: str, secret_id: str, version_id: str):
        """Initialize secret version not found error.

        Args:
            project_id: Owning project
            secret_id: Secret identifier
            version_id: Version identifier (already resolved for 'latest')
        """
        message = (
            f"Secret Version [projects/{project_id}/secrets/{secret_id}"
            f"/versions/{version_id}] not found."
        )
        super().__init__(message)
        self.project_id = project_id
        self.secret_id = secret_id
        self.version_id = version_id


class SecretAlreadyExistsError(SecretManagerError):
    """Raised when attempting to create a secret that already exists."""

    status = "ALREADY_EXISTS"
    code = 409

    def __init__(self, project_id: str, secret_id: str):
        """Initialize secret already exists error.

        Args:
            project_id: Owning project
            secret_id: Secret identifier
        """
        message = f"Secret [projects/{project_id}/secrets/{secret_id}] already exists."
        super().__init__(message)
        self.project_id = project_id
        self.secret_id = secret_id


class InvalidArgumentError(SecretManagerError):
    """Raised when a request is malformed before it reaches the store."""

    status = "INVALID_ARGUMENT"
    code = 400


class InvalidResourceNameError(InvalidArgumentError):
    """Raised when a resource name or identifier cannot be parsed."""

    def __init__(self, name: str, reason: str):
        """Initialize invalid resource name error.

        Args:
            name: Offending name or identifier
            reason: Why it was rejected
        """
        super().__init__(f"Invalid resource name [{name}]: {reason}")
        self.name = name
        self.reason = reason


class PersistenceError(SecretManagerError):
    """Raised when the snapshot file cannot be read, parsed or written."""

    status = "INTERNAL"
    code = 500
