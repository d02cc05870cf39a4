"""Application catalog: which package each manager installs for an app."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .models import PACKAGE_MANAGER_IDS

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CatalogApp:
    id: str
    name: str
    category: str
    targets: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> CatalogApp:
        app_id = str(data["id"])
        raw_targets = data.get("targets") or {}
        if not isinstance(raw_targets, dict):
            raise ValueError(f"targets for {app_id} must be an object")
        targets: dict[str, str] = {}
        for manager_id, package_name in raw_targets.items():
            if manager_id not in PACKAGE_MANAGER_IDS:
                log.warning(
                    "Ignoring unknown package manager %s for %s", manager_id, app_id
                )
                continue
            targets[manager_id] = str(package_name or "")
        return cls(
            id=app_id,
            name=str(data.get("name", app_id)),
            category=str(data.get("category", "")),
            targets=targets,
        )


def iter_targets(app: CatalogApp) -> Iterator[tuple[str, str]]:
    """Yield ``(package_manager_id, package_name)`` for declared targets."""
    for manager_id, package_name in app.targets.items():
        if package_name:
            yield manager_id, package_name


def find_app(apps: Iterable[CatalogApp], app_id: str) -> CatalogApp | None:
    return next((app for app in apps if app.id == app_id), None)


def load_catalog(path: str | Path) -> list[CatalogApp]:
    """Read a JSON list of ``{id, name, category, targets}`` objects."""
    with open(path, encoding="utf-8") as handle:
        raw = json.load(handle)
    if not isinstance(raw, list):
        raise ValueError(f"Catalog {path} must contain a JSON list")
    return [CatalogApp.from_dict(entry) for entry in raw]


DEFAULT_CATALOG: Sequence[CatalogApp] = (
    CatalogApp(
        id="firefox",
        name="Firefox",
        category="Web Browsers",
        targets={
            "homebrew": "--cask firefox",
            "macports": "firefox",
            "apt": "firefox",
            "dnf": "firefox",
            "pacman": "firefox",
            "zypper": "MozillaFirefox",
            "flatpak": "org.mozilla.firefox",
            "snap": "firefox",
            "winget": "Mozilla.Firefox",
            "chocolatey": "firefox",
            "scoop": "extras/firefox",
        },
    ),
    CatalogApp(
        id="vscode",
        name="VS Code",
        category="Dev: Editors",
        targets={
            "homebrew": "--cask visual-studio-code",
            "flatpak": "com.visualstudio.code",
            "snap": "code --classic",
            "winget": "Microsoft.VisualStudioCode",
            "chocolatey": "vscode",
            "scoop": "extras/vscode",
        },
    ),
    CatalogApp(
        id="git",
        name="Git",
        category="Dev: Tools",
        targets={
            "homebrew": "git",
            "macports": "git",
            "apt": "git",
            "dnf": "git",
            "pacman": "git",
            "zypper": "git",
            "winget": "Git.Git",
            "chocolatey": "git",
            "scoop": "main/git",
        },
    ),
    CatalogApp(
        id="vlc",
        name="VLC",
        category="Media",
        targets={
            "homebrew": "--cask vlc",
            "macports": "VLC2",
            "apt": "vlc",
            "dnf": "vlc",
            "pacman": "vlc",
            "zypper": "vlc",
            "flatpak": "org.videolan.VLC",
            "snap": "vlc",
            "winget": "VideoLAN.VLC",
            "chocolatey": "vlc",
            "scoop": "extras/vlc",
        },
    ),
    CatalogApp(
        id="slack",
        name="Slack",
        category="Communication",
        targets={
            "homebrew": "--cask slack",
            "flatpak": "com.slack.Slack",
            "snap": "slack --classic",
            "winget": "SlackTechnologies.Slack",
            "chocolatey": "slack",
        },
    ),
    CatalogApp(
        id="obsidian",
        name="Obsidian",
        category="Office",
        targets={
            "homebrew": "--cask obsidian",
            "flatpak": "md.obsidian.Obsidian",
            "snap": "obsidian --classic",
            "winget": "Obsidian.Obsidian",
            "chocolatey": "obsidian",
            "scoop": "extras/obsidian",
        },
    ),
    CatalogApp(
        id="gimp",
        name="GIMP",
        category="Creative",
        targets={
            "homebrew": "--cask gimp",
            "macports": "gimp",
            "apt": "gimp",
            "dnf": "gimp",
            "pacman": "gimp",
            "zypper": "gimp",
            "flatpak": "org.gimp.GIMP",
            "snap": "gimp",
            "winget": "GIMP.GIMP",
            "chocolatey": "gimp",
            "scoop": "extras/gimp",
        },
    ),
    CatalogApp(
        id="nodejs",
        name="Node.js",
        category="Dev: Languages",
        targets={
            "homebrew": "node",
            "macports": "nodejs22",
            "apt": "nodejs",
            "dnf": "nodejs",
            "pacman": "nodejs",
            "zypper": "nodejs",
            "snap": "node --classic",
            "winget": "OpenJS.NodeJS.LTS",
            "chocolatey": "nodejs-lts",
            "scoop": "main/nodejs-lts",
        },
    ),
)


__all__ = [
    "DEFAULT_CATALOG",
    "CatalogApp",
    "find_app",
    "iter_targets",
    "load_catalog",
]
