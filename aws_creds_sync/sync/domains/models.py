"""Domain models for credential synchronization."""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

# Credentials copied from the environment, in upsert order
CREDENTIAL_KEYS: Tuple[str, ...] = (
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
)

# Terraform variable policy: credentials are always sensitive env vars
ENV_CATEGORY = "env"
HCL = False
SENSITIVE = True

SKIPPED = "skipped"
OVERWRITTEN = "overwritten"
UPDATED = "updated"
CREATED = "created"


@dataclass(frozen=True)
class SecretEntry:
    """A credential name and the value read from the environment."""
    name: str
    value: Optional[str]

    def __repr__(self) -> str:
        # Never leak the value into logs or tracebacks
        return f"SecretEntry(name={self.name!r}, value={'***' if self.value else None})"


@dataclass(frozen=True)
class Project:
    """CircleCI project descriptor."""
    slug: str
    name: str
    organization_name: Optional[str] = None


@dataclass(frozen=True)
class Workspace:
    """Terraform Cloud workspace."""
    id: str
    name: str


@dataclass(frozen=True)
class WorkspaceVariable:
    """Existing Terraform workspace variable record (value omitted)."""
    id: str
    type: str
    key: str
    category: str


@dataclass(frozen=True)
class UpsertOutcome:
    """Result of upserting a single credential."""
    name: str
    action: str  # skipped, overwritten, updated or created


@dataclass
class SyncReport:
    """Summary of a sync run against one resource."""
    resource: str
    outcomes: List[UpsertOutcome] = field(default_factory=list)

    @property
    def applied(self) -> List[str]:
        return [o.name for o in self.outcomes if o.action != SKIPPED]

    @property
    def skipped(self) -> List[str]:
        return [o.name for o in self.outcomes if o.action == SKIPPED]
