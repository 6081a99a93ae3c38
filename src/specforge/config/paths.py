"""Where SpecForge keeps its files.

Two roots:
- The workspace (the working directory, or ``--workdir``) holds
  ``.specforge/`` with project data and the debug log. Exports land in the
  workspace itself.
- User settings follow XDG: ``$XDG_CONFIG_HOME/specforge/settings.json``
  (default ``~/.config/specforge/settings.json``).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

WORKSPACE_DIRNAME = ".specforge"


def _xdg_config_home() -> Path:
    """XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


@dataclass
class SpecforgePaths:
    """Resolved locations for one workspace."""

    workspace: Path
    _config_home: Path = field(default_factory=_xdg_config_home)

    # ─── Workspace ───────────────────────────────────────────────────────

    @property
    def workspace_config(self) -> Path:
        return self.workspace / WORKSPACE_DIRNAME

    @property
    def projects_dir(self) -> Path:
        """Default projects root, unless settings name another one."""
        return self.workspace_config / "projects"

    @property
    def exports_dir(self) -> Path:
        return self.workspace

    @property
    def debug_log(self) -> Path:
        return self.workspace_config / "debug.log"

    # ─── User config ─────────────────────────────────────────────────────

    @property
    def global_config_dir(self) -> Path:
        return self._config_home / "specforge"

    @property
    def global_settings(self) -> Path:
        return self.global_config_dir / "settings.json"


_paths: SpecforgePaths | None = None


def get_paths(workspace: Path | None = None) -> SpecforgePaths:
    """Return the shared paths, resolving them on first use.

    Args:
        workspace: Workspace for the first call; the current directory when
            omitted. Ignored once paths are resolved.
    """
    global _paths
    if _paths is None:
        _paths = SpecforgePaths(workspace=workspace or Path.cwd())
    return _paths


def reset_paths() -> None:
    """Forget resolved paths, e.g. after changing directory."""
    global _paths
    _paths = None
