"""
Configuration management for the priority engine
Handles loading and saving scoring weights and display limits
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Any, Optional, Mapping

from .models import SourceType, parse_bool

logger = logging.getLogger(__name__)

ENV_PREFIX = "ATTENTION_"


class PriorityConfigError(ValueError):
    """Raised when a configuration value is structurally invalid"""


@dataclass(frozen=True)
class ScoringWeights:
    """Linear weights for the score composer"""
    urgency: float = 0.35
    importance: float = 0.30
    recency: float = 0.15
    commitment: float = 0.20
    effort: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ScoringWeights':
        """Create weights from a mapping, keeping defaults for missing keys"""
        if not isinstance(data, Mapping):
            raise PriorityConfigError(f"weights must be a mapping, got {data!r}")
        values = {}
        for f in fields(cls):
            if f.name in data:
                values[f.name] = _as_float(data[f.name], f"weights.{f.name}")
        return cls(**values)

    def to_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class PriorityConfig:
    """
    Scoring and selection configuration.

    Built once (from defaults, a settings file or the environment) and
    passed explicitly into every ranking pass. Frozen so no stage can
    change it mid-computation.
    """
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    min_score: float = 0.3
    max_items: int = 10
    max_items_per_source: int = 3
    company_stale_threshold: int = 14  # days
    source_caps: Mapping[SourceType, int] = field(default_factory=dict)
    strict_max_items: bool = False

    def cap_for(self, source_type: SourceType) -> int:
        """Per-source-type cap, honoring any override in source_caps"""
        return self.source_caps.get(source_type, self.max_items_per_source)

    def with_overrides(self, **overrides: Any) -> 'PriorityConfig':
        """Return a copy with the given fields replaced (None values are ignored)"""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "weights" in changes and isinstance(changes["weights"], Mapping):
            merged = {**self.weights.to_dict(), **changes["weights"]}
            changes["weights"] = ScoringWeights.from_dict(merged)
        if "source_caps" in changes:
            changes["source_caps"] = _parse_source_caps(changes["source_caps"])
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'PriorityConfig':
        """Create PriorityConfig from a plain mapping (unknown keys are ignored)"""
        default = cls()
        return cls(
            weights=ScoringWeights.from_dict(data.get("weights") or {}),
            min_score=_as_float(data.get("min_score", default.min_score), "min_score"),
            max_items=_as_int(data.get("max_items", default.max_items), "max_items"),
            max_items_per_source=_as_int(
                data.get("max_items_per_source", default.max_items_per_source),
                "max_items_per_source",
            ),
            company_stale_threshold=_as_int(
                data.get("company_stale_threshold", default.company_stale_threshold),
                "company_stale_threshold",
            ),
            source_caps=_parse_source_caps(data.get("source_caps") or {}),
            strict_max_items=parse_bool(data.get("strict_max_items")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weights": self.weights.to_dict(),
            "min_score": self.min_score,
            "max_items": self.max_items,
            "max_items_per_source": self.max_items_per_source,
            "company_stale_threshold": self.company_stale_threshold,
            "source_caps": {k.value: v for k, v in self.source_caps.items()},
            "strict_max_items": self.strict_max_items,
        }


def _as_float(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise PriorityConfigError(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise PriorityConfigError(f"{name} must be a number, got {value!r}")


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise PriorityConfigError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PriorityConfigError(f"{name} must be an integer, got {value!r}")


def _parse_source_caps(data: Mapping[Any, Any]) -> Dict[SourceType, int]:
    if not isinstance(data, Mapping):
        raise PriorityConfigError(f"source_caps must be a mapping, got {data!r}")
    caps = {}
    for key, value in data.items():
        try:
            source_type = SourceType(key)
        except ValueError:
            raise PriorityConfigError(f"Unknown source type in source_caps: {key!r}")
        caps[source_type] = _as_int(value, f"source_caps.{source_type.value}")
    return caps


DEFAULT_PRIORITY_CONFIG = PriorityConfig()

# Lightweight model: urgency and importance only, no threshold or diversity
V1_PRIORITY_CONFIG = PriorityConfig(
    weights=ScoringWeights(urgency=0.60, importance=0.40, recency=0.0, commitment=0.0, effort=0.0),
    min_score=0.0,
    max_items=8,
    max_items_per_source=999,
)

# Full coverage model with effort weighting
V2_PRIORITY_CONFIG = PriorityConfig(
    weights=ScoringWeights(urgency=0.30, importance=0.25, recency=0.10, commitment=0.25, effort=0.10),
    min_score=0.2,
    max_items=12,
    max_items_per_source=4,
)

PRESETS = {
    "default": DEFAULT_PRIORITY_CONFIG,
    "v1": V1_PRIORITY_CONFIG,
    "v2": V2_PRIORITY_CONFIG,
}

# Environment variable -> (config key, parser)
_ENV_FIELDS = {
    "MIN_SCORE": ("min_score", float),
    "MAX_ITEMS": ("max_items", int),
    "MAX_ITEMS_PER_SOURCE": ("max_items_per_source", int),
    "COMPANY_STALE_THRESHOLD": ("company_stale_threshold", int),
}


class Config:
    """Settings store for the priority engine"""

    def __init__(self, config_dir: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize configuration manager

        Args:
            config_dir: Path to configuration directory (defaults to ./config)
            environ: Environment mapping for overrides (defaults to os.environ)
        """
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.environ = os.environ if environ is None else environ

        self.priority_file = self.config_dir / "priority.json"
        self.settings = self._load_json(self.priority_file, self._default_settings())

    def _load_json(self, file_path: Path, default: Dict[str, Any]) -> Dict[str, Any]:
        """Load JSON file or return default if file doesn't exist"""
        if file_path.exists():
            with open(file_path, 'r') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise PriorityConfigError(f"{file_path} must contain a JSON object")
            return data
        else:
            # Create file with defaults
            self._save_json(file_path, default)
            return default

    def _save_json(self, file_path: Path, data: Dict[str, Any]) -> None:
        """Save data to JSON file"""
        with open(file_path, 'w') as f:
            json.dump(data, f, indent=2)

    def _default_settings(self) -> Dict[str, Any]:
        """Default priority settings (values come from the preset unless set here)"""
        return {"preset": "default"}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return self.settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value and save to disk

        Args:
            key: Configuration key
            value: Value to set
        """
        candidate = {**self.settings, key: value}
        # Fail before persisting anything unusable
        PriorityConfig.from_dict(candidate)
        self.settings = candidate
        self._save_json(self.priority_file, self.settings)

    def _env_overrides(self) -> Dict[str, Any]:
        """Collect overrides from ATTENTION_* environment variables"""
        overrides: Dict[str, Any] = {}
        for suffix, (key, parse) in _ENV_FIELDS.items():
            raw = self.environ.get(ENV_PREFIX + suffix)
            if raw is None:
                continue
            try:
                overrides[key] = parse(raw)
            except ValueError:
                logger.warning("Ignoring %s%s=%r: not a valid %s", ENV_PREFIX, suffix, raw, parse.__name__)

        weights = {}
        for f in fields(ScoringWeights):
            name = f"{ENV_PREFIX}WEIGHT_{f.name.upper()}"
            raw = self.environ.get(name)
            if raw is None:
                continue
            try:
                weights[f.name] = float(raw)
            except ValueError:
                logger.warning("Ignoring %s=%r: not a valid float", name, raw)
        if weights:
            overrides["weights"] = weights
        return overrides

    def priority_config(self) -> PriorityConfig:
        """Build the effective PriorityConfig (file settings, then environment)"""
        preset_name = self.settings.get("preset", "default")
        if preset_name not in PRESETS:
            raise PriorityConfigError(f"Unknown preset: {preset_name!r}")

        merged = {**PRESETS[preset_name].to_dict(), **self.settings}
        weights = self.settings.get("weights") or {}
        if isinstance(weights, Mapping):
            merged["weights"] = {**PRESETS[preset_name].weights.to_dict(), **weights}
        # Anything else is left for from_dict to reject
        return PriorityConfig.from_dict(merged).with_overrides(**self._env_overrides())
