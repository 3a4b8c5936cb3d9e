"""
Bootstrap profile — what a setup run installs and configures.

Loaded from devstrap.yml (or built from defaults), this is the fixed
set of packages, the editor recipe, the git identity, and the git
aliases that setup applies to the host.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

SUPPORTED_PACKAGE_MANAGERS = ("apt",)


class PackageSpec(BaseModel):
    """A package to install through the host package manager."""

    name: str
    display_name: str = ""
    only_if_missing: str | None = None  # skip when this command already exists

    @property
    def label(self) -> str:
        return self.display_name or self.name


class EditorSpec(BaseModel):
    """Visual Studio Code install recipe (third-party apt repository)."""

    enabled: bool = True
    package: str = "code"
    command: str = "code"
    key_url: str = "https://packages.microsoft.com/keys/microsoft.asc"
    keyring: str = "/etc/apt/trusted.gpg.d/packages.microsoft.gpg"
    sources_list: str = "/etc/apt/sources.list.d/vscode.list"
    repo_line: str = (
        "deb [arch=amd64,arm64,armhf signed-by=/etc/apt/trusted.gpg.d/packages.microsoft.gpg] "
        "https://packages.microsoft.com/repos/code stable main"
    )


class GitIdentity(BaseModel):
    """Global git identity. Empty values are left untouched."""

    email: str = ""
    name: str = ""


def _default_packages() -> list[PackageSpec]:
    return [
        PackageSpec(name="git", display_name="Git"),
        PackageSpec(name="vim", display_name="Vim"),
        PackageSpec(name="python3", display_name="Python 3", only_if_missing="python3"),
        PackageSpec(name="python3-pip", display_name="Python pip"),
        PackageSpec(name="curl", display_name="curl"),
    ]


def _default_aliases() -> dict[str, str]:
    return {
        "st": "status",
        "l": "log --oneline",
        "lg": "log",
        "br": "branch",
        "co": "checkout",
        "reb": "rebase",
        "ci": "commit",
        "uncommit": "reset HEAD~1",
        "unstage": "restore --staged",
    }


class BootstrapProfile(BaseModel):
    """Everything a setup run applies to the host."""

    name: str = "default"
    packages: list[PackageSpec] = Field(default_factory=_default_packages)
    editor: EditorSpec = Field(default_factory=EditorSpec)
    git_user: GitIdentity = Field(default_factory=GitIdentity)
    git_aliases: dict[str, str] = Field(default_factory=_default_aliases)

    def git_settings(self) -> list[tuple[str, str]]:
        """Ordered (key, target) pairs for git config, identity first."""
        settings: list[tuple[str, str]] = []
        if self.git_user.email:
            settings.append(("user.email", self.git_user.email))
        if self.git_user.name:
            settings.append(("user.name", self.git_user.name))
        for alias, expansion in self.git_aliases.items():
            settings.append((f"alias.{alias}", expansion))
        return settings


class Settings(BaseModel):
    """Runtime settings: where logs live and how commands run."""

    work_dir: str = "."
    undo_pattern: str = "undo-commands-*.txt"
    setup_log_pattern: str = "setup-log-*.txt"
    command_timeout: int = 600
    package_manager: str = "apt"

    @field_validator("package_manager")
    @classmethod
    def _known_manager(cls, value: str) -> str:
        if value not in SUPPORTED_PACKAGE_MANAGERS:
            raise ValueError(
                f"Unsupported package manager '{value}'. "
                f"Supported: {', '.join(SUPPORTED_PACKAGE_MANAGERS)}"
            )
        return value

    @field_validator("command_timeout")
    @classmethod
    def _positive_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("command_timeout must be positive")
        return value


class DevstrapConfig(BaseModel):
    """Root configuration — loaded from devstrap.yml."""

    version: int = 1
    settings: Settings = Field(default_factory=Settings)
    profile: BootstrapProfile = Field(default_factory=BootstrapProfile)
