# -*- coding: ascii -*-
"""
Scaffold decomposition settings.

Settings are an immutable value passed explicitly into every reducer,
cascade and driver call. Defaults can be overridden from
configs/default_settings.yaml or from a plain dict.
"""

import logging
import yaml
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional, Tuple, FrozenSet

from .exceptions import SettingsError

LOG = logging.getLogger(__name__)


class ScaffoldMode(str, Enum):
    """Scaffold variants produced by the reducer."""
    SCHUFFENHAUER_SCAFFOLD = 'schuffenhauer_scaffold'
    MURCKO_FRAMEWORK = 'murcko_framework'
    BASIC_WIRE_FRAME = 'basic_wire_frame'
    ELEMENTAL_WIRE_FRAME = 'elemental_wire_frame'
    BASIC_FRAMEWORK = 'basic_framework'


# Cascade rule ids in default evaluation order
DEFAULT_RULE_ORDER: Tuple[str, ...] = (
    'LINKER_ATTACHED',
    'HETERO_THREE',
    'MACROCYCLE',
    'FEWER_LINKER_BONDS',
    'NON_AROMATIC',
    'AROMATIC_SYSTEM',
    'HETEROATOM_COUNT',
    'HETEROATOM_TYPE',
    'RING_SIZE_CLASS',
    'SMALLER_RING',
    'LINKER_HETEROATOM',
)

AROMATICITY_MODELS = ('default', 'rdkit', 'simple', 'mdl')
HETEROATOM_PREFERENCES = ('carbocycles_first', 'heterocycles_first')
IDENTITY_POLICIES = ('smiles', 'inchikey')

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "configs" / "default_settings.yaml"


@dataclass(frozen=True)
class ScaffoldSettings:
    """Immutable configuration for scaffold reduction and ring removal.

    Attributes:
        scaffold_mode: Scaffold variant produced by the reducer
        retain_bond_orders: Keep non-aromatic multiple bonds (and exocyclic
            double-bonded atoms for the Schuffenhauer scaffold)
        determine_aromaticity: Re-perceive aromaticity on every fragment;
            when False fragments are kept in Kekule form without aromatic flags
        aromaticity_model: RDKit aromaticity model used for perception
        rule_seven_applied: Enable the AROMATIC_SYSTEM rule
        prefer_non_aromatic: Enable the NON_AROMATIC rule
        heteroatom_preference: Direction of the HETEROATOM_COUNT rule
        rule_order: Evaluation order of cascade rule ids
        disabled_rules: Rule ids skipped by the cascade
        macrocycle_size: Minimum size of a ring treated as macrocycle
        identity_policy: Canonical identity used for dedup ('smiles' or 'inchikey')
    """
    scaffold_mode: ScaffoldMode = ScaffoldMode.SCHUFFENHAUER_SCAFFOLD
    retain_bond_orders: bool = True
    determine_aromaticity: bool = True
    aromaticity_model: str = 'default'
    rule_seven_applied: bool = True
    prefer_non_aromatic: bool = True
    heteroatom_preference: str = 'carbocycles_first'
    rule_order: Tuple[str, ...] = DEFAULT_RULE_ORDER
    disabled_rules: FrozenSet[str] = field(default_factory=frozenset)
    macrocycle_size: int = 12
    identity_policy: str = 'smiles'

    def __post_init__(self):
        # Coerce YAML-friendly values into their canonical types
        try:
            object.__setattr__(self, 'scaffold_mode', ScaffoldMode(self.scaffold_mode))
        except ValueError:
            raise SettingsError(f"Unknown scaffold mode: {self.scaffold_mode!r}")
        object.__setattr__(self, 'rule_order', tuple(self.rule_order))
        object.__setattr__(self, 'disabled_rules', frozenset(self.disabled_rules))

        if self.aromaticity_model not in AROMATICITY_MODELS:
            raise SettingsError(f"Unknown aromaticity model: {self.aromaticity_model!r}")
        if self.heteroatom_preference not in HETEROATOM_PREFERENCES:
            raise SettingsError(f"Unknown heteroatom preference: {self.heteroatom_preference!r}")
        if self.identity_policy not in IDENTITY_POLICIES:
            raise SettingsError(f"Unknown identity policy: {self.identity_policy!r}")
        if self.macrocycle_size < 3:
            raise SettingsError(f"macrocycle_size must be >= 3, got {self.macrocycle_size}")

        unknown = [r for r in self.rule_order if r not in DEFAULT_RULE_ORDER]
        unknown += [r for r in self.disabled_rules if r not in DEFAULT_RULE_ORDER]
        if unknown:
            raise SettingsError(f"Unknown cascade rule ids: {sorted(set(unknown))}")
        if len(set(self.rule_order)) != len(self.rule_order):
            raise SettingsError("rule_order contains duplicate rule ids")

    def replace(self, **overrides) -> 'ScaffoldSettings':
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)

    def is_rule_enabled(self, rule_id: str) -> bool:
        """Check whether a cascade rule takes part in ring selection."""
        if rule_id in self.disabled_rules:
            return False
        if rule_id == 'NON_AROMATIC' and not self.prefer_non_aromatic:
            return False
        if rule_id == 'AROMATIC_SYSTEM' and not self.rule_seven_applied:
            return False
        return rule_id in self.rule_order

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict view suitable for YAML dumping."""
        return {
            'scaffold_mode': self.scaffold_mode.value,
            'retain_bond_orders': self.retain_bond_orders,
            'determine_aromaticity': self.determine_aromaticity,
            'aromaticity_model': self.aromaticity_model,
            'rule_seven_applied': self.rule_seven_applied,
            'prefer_non_aromatic': self.prefer_non_aromatic,
            'heteroatom_preference': self.heteroatom_preference,
            'rule_order': list(self.rule_order),
            'disabled_rules': sorted(self.disabled_rules),
            'macrocycle_size': self.macrocycle_size,
            'identity_policy': self.identity_policy,
        }


def settings_from_dict(data: Optional[Dict[str, Any]]) -> ScaffoldSettings:
    """
    Build settings from a plain dict.

    Unknown keys are logged and ignored; invalid values raise SettingsError.

    Args:
        data: Mapping of setting names to values (may be None)

    Returns:
        ScaffoldSettings instance
    """
    if not data:
        return ScaffoldSettings()
    if not isinstance(data, dict):
        raise SettingsError(f"Settings must be a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(ScaffoldSettings)}
    kwargs = {}
    for key, value in data.items():
        if key not in known:
            LOG.warning(f"Ignoring unknown setting '{key}'")
            continue
        kwargs[key] = value

    for key in ('rule_order', 'disabled_rules'):
        if key in kwargs and kwargs[key] is None:
            del kwargs[key]

    try:
        return ScaffoldSettings(**kwargs)
    except TypeError as e:
        raise SettingsError(str(e)) from e


def load_settings(config_path: Optional[Path] = None) -> ScaffoldSettings:
    """
    Load settings from YAML.

    The file may hold the settings at top level or under a 'scaffold' key.

    Args:
        config_path: Path to YAML file (defaults to configs/default_settings.yaml)

    Returns:
        ScaffoldSettings instance; defaults when the file does not exist
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        LOG.warning(f"Settings file not found: {config_path}, using defaults")
        return ScaffoldSettings()

    with open(config_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict) and isinstance(data.get('scaffold'), dict):
        data = data['scaffold']

    settings = settings_from_dict(data)
    LOG.debug(f"Loaded settings from {config_path}: {settings.to_dict()}")
    return settings
