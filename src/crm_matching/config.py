from __future__ import annotations

import logging
import math
import os
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when matching configuration is missing or inconsistent."""


@dataclass(frozen=True)
class FuzzyConfig:
    """Weights and thresholds for one matching profile.

    ``min_similarity_threshold`` is handed to the similarity search and is not
    used by the scorer itself. ``name_weight + method_weight`` must be 1.0 so a
    perfect name and method overlap scores exactly 1.0.
    """

    min_similarity_threshold: float
    confidence_threshold: float
    name_weight: float
    method_weight: float

    def score(self, name_similarity: float, method_matches: int, total_methods: int) -> float:
        score = name_similarity * self.name_weight
        if total_methods > 0:
            score += (method_matches / total_methods) * self.method_weight
        return score

    def validate(self) -> FuzzyConfig:
        for f in fields(self):
            value = getattr(self, f.name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{f.name} must be within [0, 1], got {value!r}")
        if not math.isclose(self.name_weight + self.method_weight, 1.0):
            raise ConfigError(
                "name_weight + method_weight must equal 1.0, got "
                f"{self.name_weight} + {self.method_weight}"
            )
        return self


IMPORT_CONFIG = FuzzyConfig(
    min_similarity_threshold=0.3,
    confidence_threshold=0.5,
    name_weight=0.6,
    method_weight=0.4,
)

CALENDAR_CONFIG = FuzzyConfig(
    min_similarity_threshold=0.3,
    confidence_threshold=0.7,
    name_weight=0.6,
    method_weight=0.4,
)

PROFILES: dict[str, FuzzyConfig] = {
    "import": IMPORT_CONFIG,
    "calendar": CALENDAR_CONFIG,
}

# Similar contacts fetched per candidate
DEFAULT_CANDIDATE_LIMIT = 5


def get_profile(name: str, profiles: dict[str, FuzzyConfig] | None = None) -> FuzzyConfig:
    profiles = PROFILES if profiles is None else profiles
    try:
        return profiles[name]
    except KeyError:
        raise ConfigError(
            f"unknown profile {name!r} (expected one of: {', '.join(sorted(profiles))})"
        ) from None


# ── Workspace + settings file ──────────────────────────────────────────────────

@dataclass
class Paths:
    root: Path
    candidates_dir: Path
    contacts_dir: Path
    local_dir: Path
    conf_file: Path


@dataclass
class Settings:
    profiles: dict[str, FuzzyConfig] = field(default_factory=lambda: dict(PROFILES))
    default_profile: str = "import"
    candidate_limit: int = DEFAULT_CANDIDATE_LIMIT

    def profile(self, name: str | None = None) -> FuzzyConfig:
        return get_profile(name or self.default_profile, self.profiles)


DEFAULT_CONF = """# crm-matching local config (TOML)
default_profile = "import"
candidate_limit = 5

# Override any preset field per profile, e.g.
# [import]
# confidence_threshold = 0.5
#
# [calendar]
# confidence_threshold = 0.7
"""


def ensure_workspace(base: Path | None = None) -> tuple[Paths, Settings]:
    root = Path(base or os.getcwd())
    candidates = root / "candidates"
    contacts = root / "contacts"
    local = root / "local"
    conf = local / "matching.conf"

    for d in (candidates, contacts, local):
        d.mkdir(parents=True, exist_ok=True)

    if not conf.exists():
        conf.write_text(DEFAULT_CONF, encoding="utf-8")

    return (
        Paths(root=root, candidates_dir=candidates, contacts_dir=contacts, local_dir=local, conf_file=conf),
        load_settings(conf),
    )


def _apply_overrides(name: str, base: FuzzyConfig, table: Any) -> FuzzyConfig:
    if not isinstance(table, dict):
        raise ConfigError(f"[{name}] must be a table")
    known = {f.name for f in fields(FuzzyConfig)}
    unknown = set(table) - known
    if unknown:
        raise ConfigError(f"[{name}] has unknown key(s): {', '.join(sorted(unknown))}")
    overrides: dict[str, float] = {}
    for key, value in table.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"[{name}] {key} must be a number, got {value!r}")
        overrides[key] = float(value)
    return replace(base, **overrides)


def load_settings(conf_path: Path) -> Settings:
    """Read the TOML settings file, validating every profile once.

    A missing file yields the built-in presets.
    """
    settings = Settings()
    conf_path = Path(conf_path)
    if not conf_path.exists():
        logger.debug("No config at %s, using built-in profiles", conf_path)
        return settings

    try:
        data = tomllib.loads(conf_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{conf_path}: {e}") from e

    profiles = dict(PROFILES)
    for name, value in data.items():
        if isinstance(value, dict):
            profiles[name] = _apply_overrides(name, profiles.get(name, IMPORT_CONFIG), value)

    for name, cfg in profiles.items():
        try:
            cfg.validate()
        except ConfigError as e:
            raise ConfigError(f"profile {name!r}: {e}") from e

    settings.profiles = profiles
    settings.default_profile = str(data.get("default_profile", settings.default_profile))
    get_profile(settings.default_profile, profiles)

    limit = data.get("candidate_limit", settings.candidate_limit)
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
        raise ConfigError(f"candidate_limit must be a positive integer, got {limit!r}")
    settings.candidate_limit = limit

    return settings
