"""
Config check use case — validate devstrap.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from devstrap.core.config.loader import ConfigError, find_config_file, load_config
from devstrap.core.models.profile import DevstrapConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: DevstrapConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        profile = self.config.profile if self.config else None
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "profile": profile.name if profile else None,
            "package_count": len(profile.packages) if profile else 0,
            "git_setting_count": len(profile.git_settings()) if profile else 0,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate devstrap configuration and report issues.

    Args:
        config_path: Optional explicit path to devstrap.yml.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
    result.config_path = config_path

    try:
        config = load_config(config_path, search=False)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.config = config
    result.valid = True

    if config_path is None:
        result.warnings.append("No devstrap.yml found — built-in defaults apply.")

    profile = config.profile
    names = [p.name for p in profile.packages]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        result.warnings.append(f"Duplicate packages: {', '.join(duplicates)}")

    if not profile.git_user.email or not profile.git_user.name:
        result.warnings.append("Git identity is incomplete — missing values are left untouched.")

    if not profile.packages and not profile.git_settings() and not profile.editor.enabled:
        result.warnings.append("Profile applies nothing.")

    return result
