from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Any

from .preprocess import clean_input
from .schema import BiopsyLocation, DEFAULT_STAINS, HP_STAIN, IM_STAIN

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stain:
    name: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "description": self.description}


# A missing location means "no auxiliary stains".
StainConfig = Dict[BiopsyLocation, List[Stain]]


def default_stain_config() -> StainConfig:
    return {loc: [Stain(n, d) for n, d in stains] for loc, stains in DEFAULT_STAINS.items()}


def stains_for(config: StainConfig, location: BiopsyLocation) -> List[Stain]:
    return list(config.get(location) or [])


def add_stain(config: StainConfig, location: BiopsyLocation, name: str, description: str) -> StainConfig:
    """Return a new config with the stain appended. Blank name or description is a no-op.

    Duplicates are allowed.
    """
    name = clean_input(name)
    description = clean_input(description)
    if not name or not description:
        logger.debug("Ignoring stain with blank name/description for %s", location.value)
        return config

    updated = dict(config)
    updated[location] = stains_for(config, location) + [Stain(name, description)]
    logger.debug("Added stain %r to %s", name, location.value)
    return updated


def remove_stain(config: StainConfig, location: BiopsyLocation, index: int) -> StainConfig:
    current = stains_for(config, location)
    if not 0 <= index < len(current):
        logger.debug("Ignoring stain removal at %s[%d]", location.value, index)
        return config

    updated = dict(config)
    updated[location] = current[:index] + current[index + 1:]
    return updated


def _matches(stain: Stain, special) -> bool:
    name, keyword, _ = special
    return stain.name == name and keyword in stain.description


def is_hp_stain(stain: Stain) -> bool:
    """Warthin-Starry configured for Helicobacter evaluation."""
    return _matches(stain, HP_STAIN)


def is_im_stain(stain: Stain) -> bool:
    """PAS+AB configured for intestinal metaplasia evaluation."""
    return _matches(stain, IM_STAIN)


def special_finding(stain: Stain):
    """Name of the stomach finding a special stain depends on, else None."""
    if is_hp_stain(stain):
        return HP_STAIN[2]
    if is_im_stain(stain):
        return IM_STAIN[2]
    return None


def config_to_dict(config: StainConfig) -> Dict[str, List[Dict[str, str]]]:
    return {loc.value: [s.to_dict() for s in stains] for loc, stains in config.items()}


def config_from_dict(d: Dict[str, Any]) -> StainConfig:
    return {
        BiopsyLocation(loc): [Stain(s["name"], s["description"]) for s in (stains or [])]
        for loc, stains in (d or {}).items()
    }
