"""Distribution metadata lookup from the cpanm build directory.

cpanm leaves each unpacked distribution under
``<build_dir>/latest-build/<dist>/``. The META files found there supply the
``prereqs`` block of a retained report.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

import yaml

logger = logging.getLogger(__name__)

META_FILES = ("META.json", "META.yml", "META.yaml", "MYMETA.json", "MYMETA.yml")

# meta-spec 1.x top-level key -> (phase, relationship) in meta-spec 2
_V1_PREREQ_KEYS = {
    "requires": ("runtime", "requires"),
    "recommends": ("runtime", "recommends"),
    "conflicts": ("runtime", "conflicts"),
    "build_requires": ("build", "requires"),
    "configure_requires": ("configure", "requires"),
    "test_requires": ("test", "requires"),
}


class MetadataLookup(Protocol):
    def get_meta_for(self, dist: str) -> dict[str, Any] | None:
        ...


def _spec_version(meta: dict[str, Any]) -> float:
    spec = meta.get("meta-spec")
    if not isinstance(spec, dict):
        return 1.0
    try:
        return float(spec.get("version", 1))
    except (TypeError, ValueError):
        return 1.0


def convert_to_v2(meta: dict[str, Any]) -> dict[str, Any]:
    """Return *meta* with a meta-spec 2 ``prereqs`` structure.

    Only the prerequisite keys are translated; everything else is copied
    through unchanged.
    """
    if _spec_version(meta) >= 2:
        return meta

    converted = {k: v for k, v in meta.items() if k not in _V1_PREREQ_KEYS}
    prereqs: dict[str, dict[str, Any]] = {}
    for key, (phase, relationship) in _V1_PREREQ_KEYS.items():
        modules = meta.get(key)
        if not isinstance(modules, dict) or not modules:
            continue
        prereqs.setdefault(phase, {})[relationship] = {
            str(module): str(version) for module, version in modules.items()
        }
    converted["prereqs"] = prereqs
    converted["meta-spec"] = {"version": 2}
    return converted


def load_meta_file(path: Path) -> dict[str, Any] | None:
    """Load one META file, or None if it is unreadable or not a mapping."""
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        logger.debug("Skipping unreadable metadata %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        logger.debug("Skipping metadata %s: not a mapping", path)
        return None
    return data


class BuildDirMetadata:
    """Find META files under ``<build_dir>/latest-build/<dist>/``."""

    def __init__(self, build_dir: str | Path) -> None:
        self.build_dir = Path(build_dir)

    def dist_dir(self, dist: str) -> Path:
        return self.build_dir / "latest-build" / dist

    def get_meta_for(self, dist: str) -> dict[str, Any] | None:
        """Return the first readable META file for *dist* as meta-spec 2."""
        dist_dir = self.dist_dir(dist)
        for name in META_FILES:
            meta_path = dist_dir / name
            if not meta_path.exists():
                continue
            meta = load_meta_file(meta_path)
            if meta is None:
                continue
            return convert_to_v2(meta)
        return None
