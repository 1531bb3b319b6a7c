"""
hostcheck.policy
AUTHOR: carter-vin

Threshold policy: metric name (or wildcard pattern) -> ceiling percent

Lookup order:
1) exact metric name
2) first matching wildcard pattern (declaration order), e.g. "disk:*"
3) policy default (60 unless configured)

Every ceiling must lie in [0, 100]; anything else is a PolicyError.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, Mapping

from hostcheck.errors import PolicyError

DEFAULT_CEILING = 60.0

_WILDCARD_CHARS = set("*?[")
_POLICY_FILE_KEYS = {"default", "ceilings"}


def _is_pattern(key: str) -> bool:
    return any(ch in _WILDCARD_CHARS for ch in key)


def _check_ceiling(label: str, value: Any) -> float:
    # bool is an int subclass; "true" is not a ceiling
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PolicyError(f"ceiling for {label} must be a number, got {value!r}")
    ceiling = float(value)
    if math.isnan(ceiling) or not 0.0 <= ceiling <= 100.0:
        raise PolicyError(f"ceiling for {label} must be within [0, 100], got {value!r}")
    return ceiling


@dataclass(frozen=True)
class ThresholdPolicy:
    default: float = DEFAULT_CEILING
    ceilings: Mapping[str, float] = field(default_factory=dict)

    def validate(self) -> None:
        """
        Raise PolicyError on any invalid ceiling
        """
        _check_ceiling("default", self.default)
        for key, value in self.ceilings.items():
            if not isinstance(key, str) or not key:
                raise PolicyError(f"ceiling key must be a non-empty string, got {key!r}")
            _check_ceiling(key, value)

    def ceiling_for(self, name: str) -> float:
        if name in self.ceilings:
            return float(self.ceilings[name])

        for key, value in self.ceilings.items():
            if _is_pattern(key) and fnmatchcase(name, key):
                return float(value)

        return float(self.default)

    def with_overrides(
        self,
        *,
        default: float | None = None,
        ceilings: Mapping[str, float] | None = None,
    ) -> "ThresholdPolicy":
        """
        New policy with a replaced default and/or extra ceilings

        Overrides take priority over every ceiling they cover:
        - override keys are placed first so they win the pattern scan
        - base keys matched by an override pattern are dropped, so
          "disk:*" from the command line beats "disk:/" from a policy file
        """
        overrides: dict[str, float] = dict(ceilings or {})
        patterns = [key for key in overrides if _is_pattern(key)]

        merged = dict(overrides)
        for key, value in self.ceilings.items():
            if key in merged:
                continue
            if any(fnmatchcase(key, pattern) for pattern in patterns):
                continue
            merged[key] = value
        return ThresholdPolicy(
            default=self.default if default is None else default,
            ceilings=merged,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"default": self.default, "ceilings": dict(self.ceilings)}


def policy_from_dict(payload: Any) -> ThresholdPolicy:
    """
    Build a validated policy from a decoded policy document

    {"default": 60, "ceilings": {"cpu": 80, "disk:*": 70}}
    """
    if not isinstance(payload, dict):
        raise PolicyError("policy document must be a JSON object")

    unknown = set(payload) - _POLICY_FILE_KEYS
    if unknown:
        raise PolicyError(f"unknown policy keys: {sorted(unknown)}")

    ceilings = payload.get("ceilings", {})
    if not isinstance(ceilings, dict):
        raise PolicyError("policy 'ceilings' must be an object")

    policy = ThresholdPolicy(
        default=payload.get("default", DEFAULT_CEILING),
        ceilings=dict(ceilings),
    )
    policy.validate()
    return policy


def load_policy(path: Path) -> ThresholdPolicy:
    """
    Load a JSON policy file

    Unreadable or malformed files are policy errors, never a silent default.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise PolicyError(f"cannot read policy file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise PolicyError(f"policy file {path} is not valid JSON: {e}") from e

    return policy_from_dict(payload)


def parse_ceiling_option(raw: str) -> tuple[str, float]:
    """
    Parse a NAME=PERCENT command line override
    """
    name, sep, value = raw.partition("=")
    name = name.strip()
    if not sep or not name:
        raise PolicyError(f"ceiling override must look like NAME=PERCENT, got {raw!r}")
    try:
        ceiling = float(value)
    except ValueError as e:
        raise PolicyError(f"ceiling override for {name} is not a number: {value!r}") from e
    return name, _check_ceiling(name, ceiling)
