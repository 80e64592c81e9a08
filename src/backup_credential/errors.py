"""
Error types for backup_credential.
"""
from typing import Optional


class BackupCredentialError(Exception):
    """Base error for the credential chain."""

    code = "BACKUP_CREDENTIAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.name = type(self).__name__


class CredentialStorageError(BackupCredentialError):
    """Raised when the persistent credential store cannot be read or written."""

    code = "CREDENTIAL_STORAGE_FAILURE"

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key


class CredentialAuthorizationError(BackupCredentialError):
    """Raised when no tier of the chain can produce a token."""

    code = "CREDENTIAL_AUTHORIZATION_FAILURE"

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class AuthorizationRejectedError(BackupCredentialError):
    """Raised when the target node explicitly refuses to issue a token."""

    code = "AUTHORIZATION_REJECTED"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
