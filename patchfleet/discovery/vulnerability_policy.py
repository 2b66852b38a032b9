"""
Known-vulnerable dependency versions.

The policy is a plain list of exact versions per dependency, loaded from a JSON
file of the form {"react": ["19.0.0", ...], "next": ["15.0.4", ...]}.
"""
import json
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from patchfleet.errors import PolicyError
from patchfleet.utils.app_logging import logger


class VulnerabilityPolicy(BaseModel):
    versions: Dict[str, List[str]] = Field(default_factory=dict)

    def is_vulnerable(self, dependency: str, version: Optional[str]) -> bool:
        if not version:
            return False
        return version in self.versions.get(dependency, [])

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "VulnerabilityPolicy":
        """
        Load a policy file.

        Raises:
            PolicyError: If the file is missing, not JSON, or not a mapping of lists
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            policy = cls(versions=data)
        except (OSError, ValueError, ValidationError) as e:
            raise PolicyError(f"Invalid vulnerability policy {path}: {e}") from e

        logger.info(
            f"Loaded vulnerability policy from {path}: "
            + ", ".join(f"{name}={len(v)}" for name, v in policy.versions.items())
        )
        return policy
