import os
from typing import Optional
from dotenv import load_dotenv


load_dotenv()

class Config:
    "Centralized configuration for the application."

    def __init__(self):
        self.PATCHFLEET_ROOT = os.environ.get("PATCHFLEET_ROOT", ".")
        self.PATCHFLEET_POLICY_FILE = os.environ.get("PATCHFLEET_POLICY_FILE")
        self.PATCHFLEET_ACTION_BACKEND = os.environ.get("PATCHFLEET_ACTION_BACKEND", "local")
        self.PATCHFLEET_COMMAND_TIMEOUT = float(os.environ.get("PATCHFLEET_COMMAND_TIMEOUT", "600"))
        self.PATCHFLEET_COMMIT_MESSAGE = os.environ.get(
            "PATCHFLEET_COMMIT_MESSAGE", "chore(deps): upgrade vulnerable dependencies"
        )
        self.PATCHFLEET_GIT_REMOTE = os.environ.get("PATCHFLEET_GIT_REMOTE", "origin")
        self.PATCHFLEET_LOG_LEVEL = os.environ.get("PATCHFLEET_LOG_LEVEL", "INFO")
        self.PATCHFLEET_DISCOVERY_CONCURRENCY = int(
            os.environ.get("PATCHFLEET_DISCOVERY_CONCURRENCY", "8")
        )
        self.PATCHFLEET_AUDIT_CRON = os.environ.get("PATCHFLEET_AUDIT_CRON", "0 7 * * *")
        self.TEMPORAL_NAMESPACE = os.environ.get("TEMPORAL_NAMESPACE", "default")
        self.TEMPORAL_HOST = os.environ.get("TEMPORAL_HOST", "localhost:7233")

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return getattr(self, key, default)

config = Config()
