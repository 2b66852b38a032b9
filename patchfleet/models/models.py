from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class Phase(str, Enum):
    """Remediation phase of a single package. Only one phase is active at a time."""
    IDLE = "idle"
    UPGRADING = "upgrading"
    COMMITTING = "committing"
    CHECKING_OUT = "checking_out"


class MessageKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class FleetFilter(str, Enum):
    ALL = "all"
    VULNERABLE_ONLY = "vulnerable_only"


class CheckoutKind(str, Enum):
    PULL = "pull"
    RETURN_TO_DEFAULT = "return_to_default"


class PackageInfo(BaseModel):
    """
    A tracked working copy as reported by discovery.

    Vulnerability flags are computed by discovery against the vulnerability
    policy; nothing downstream re-derives them.
    """
    path: str
    relative_path: str
    react_version: Optional[str] = None
    next_version: Optional[str] = None
    is_react_vulnerable: bool = False
    is_next_vulnerable: bool = False
    package_manager: Optional[str] = None
    git_branch: Optional[str] = None
    default_branch: Optional[str] = None
    commits_behind_default: Optional[int] = Field(default=None, ge=0)

    @property
    def is_vulnerable(self) -> bool:
        return self.is_react_vulnerable or self.is_next_vulnerable


class ActionResult(BaseModel):
    """Uniform result returned by the upgrade, commit and checkout collaborators."""
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, message: str) -> "ActionResult":
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, error: str) -> "ActionResult":
        return cls(success=False, error=error)


class RemediationMessage(BaseModel):
    """Outcome banner of the last completed operation on a package."""
    kind: MessageKind
    text: str


class CheckoutAction(BaseModel):
    """How the checkout/pull action is presented for a package."""
    kind: CheckoutKind
    label: str
    icon: str
    badge: Optional[str] = None


class FleetView(BaseModel):
    """Derived fleet summary; recomputed on every request."""
    total: int
    vulnerable_count: int
    filter: FleetFilter = FleetFilter.ALL
    packages: List[PackageInfo] = Field(default_factory=list)
    showing: Optional[int] = None  # Set only when the filter hides packages
