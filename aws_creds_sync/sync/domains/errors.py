"""Exceptions raised while syncing credentials."""
from typing import Optional, Sequence


class RequestFailedError(Exception):
    """HTTP request to a remote API failed."""

    def __init__(self, status_code: Optional[int], reason: str, method: str = "", url: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.method = method
        self.url = url
        if status_code is None:
            message = f"Request failed without response: {reason}"
        else:
            message = f"Request failed with response: {status_code} ({reason})"
        super().__init__(message)


class ResourceNotFoundError(Exception):
    """Named project or workspace does not exist in the organization."""
    pass


class CredentialSyncError(Exception):
    """One or more credentials could not be written to the remote store."""

    def __init__(self, resource: str, failed: Sequence[str]):
        self.resource = resource
        self.failed = list(failed)
        super().__init__(
            f"Failed to update {', '.join(self.failed)} in {resource}"
        )
