"""
Configuration handling for git_autosync.

Defines the configuration schema and provides methods for loading/saving
it from YAML files. The defaults describe the standard setup (remote
'origin', branch 'master'), so no file is needed for normal use.
"""

import socket
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


class AutosyncConfig(BaseModel):
    """Settings for a sync session."""

    model_config = ConfigDict(extra="forbid")

    remote: str = Field(
        default="origin", description="Name of the upstream remote"
    )
    upstream_branch: str = Field(
        default="master", description="Branch on the remote to rebase onto and push to"
    )
    message_prefix: str = Field(
        default="git-autosync",
        description="Prefix of synthesized commit messages",
    )
    # Host identifier used in commit messages (defaults to the local hostname)
    hostname: str | None = Field(
        default=None,
        description="Host identifier for commit messages (defaults to the local host name)",
    )
    lock_file: str = Field(
        default="git-autosync.lock",
        description="Lock file name, created inside the repository's git directory",
    )

    @field_validator("remote", "upstream_branch", "message_prefix", "lock_file")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @property
    def upstream_ref(self) -> str:
        """Remote-tracking ref name, e.g. 'origin/master'."""
        return f"{self.remote}/{self.upstream_branch}"

    def resolved_hostname(self) -> str:
        """Get the host identifier, falling back to the local host name."""
        return self.hostname or socket.gethostname()

    @classmethod
    def from_yaml(cls, path: Path) -> "AutosyncConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    def to_yaml(self, path: Path) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w") as f:
            yaml.dump(
                self.model_dump(mode="json"),
                f,
                default_flow_style=False,
                sort_keys=False,
            )


def load_config(path: Path | None = None) -> AutosyncConfig:
    """Load configuration from path, or return the defaults when path is None."""
    if path is None:
        return AutosyncConfig()
    return AutosyncConfig.from_yaml(path)
