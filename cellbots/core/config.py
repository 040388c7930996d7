"""
Configuration system for Cellbots.

Five dataclass sections (world, population, resources, bot, output), each
able to list its own problems, plus JSON load/save and dotted overrides.
"""

from __future__ import annotations

import json
import warnings
from copy import deepcopy
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any

from cellbots.core.grid import STORAGE_KINDS
from cellbots.core.topology import TOPOLOGY_KINDS


# ---------------------------------------------------------------------------
# Sub-config dataclasses (grouped by domain)
# ---------------------------------------------------------------------------

@dataclass
class WorldConfig:
    """Grid geometry, storage backend and seed."""
    width: int = 100
    height: int = 100
    seed: int = 92
    topology: str = "torus"    # see TOPOLOGY_KINDS
    storage: str = "dense"     # "dense" or "sparse"

    def validate(self) -> list[str]:
        errors = []
        if self.width < 1:
            errors.append(f"world.width must be >= 1, got {self.width}")
        if self.height < 1:
            errors.append(f"world.height must be >= 1, got {self.height}")
        if self.width > 100_000:
            errors.append(f"world.width must be <= 100000, got {self.width}")
        if self.height > 100_000:
            errors.append(f"world.height must be <= 100000, got {self.height}")
        if self.topology not in TOPOLOGY_KINDS:
            errors.append(
                f"world.topology must be one of {', '.join(TOPOLOGY_KINDS)}, got '{self.topology}'"
            )
        if self.storage not in STORAGE_KINDS:
            errors.append(
                f"world.storage must be one of {', '.join(STORAGE_KINDS)}, got '{self.storage}'"
            )
        if self.topology == "unbounded" and self.storage == "dense":
            errors.append("world.storage 'dense' cannot represent an 'unbounded' topology; use 'sparse'")
        return errors


@dataclass
class PopulationConfig:
    """Seeded population size and funding."""
    initial_count: int = 400
    initial_protein: int = 0   # drawn from resources.free_protein for each seeded bot

    def validate(self) -> list[str]:
        errors = []
        if self.initial_count < 0:
            errors.append(f"population.initial_count must be >= 0, got {self.initial_count}")
        if self.initial_count > 10_000_000:
            errors.append(f"population.initial_count must be <= 10000000, got {self.initial_count}")
        if self.initial_protein < 0:
            errors.append(f"population.initial_protein must be >= 0, got {self.initial_protein}")
        return errors


@dataclass
class ResourceConfig:
    """Starting levels of the shared resource pool."""
    free_protein: int = 300_000
    oxygen: int = 100_000
    carbon: int = 100_000

    def validate(self) -> list[str]:
        errors = []
        for name in ("free_protein", "oxygen", "carbon"):
            value = getattr(self, name)
            if value < 0:
                errors.append(f"resources.{name} must be >= 0, got {value}")
        return errors


@dataclass
class BotConfig:
    """Bot lifecycle, program and action parameters."""
    program_size: int = 5
    live_time: int = 160              # ticks a bot lives
    die_time: int = 320               # ticks a corpse lingers
    max_commands_per_step: int = 2    # instruction budget per tick
    multiply_cost: int = 4            # protein needed to reproduce
    mutation_chance: float = 1.0 / 3.0

    def validate(self) -> list[str]:
        errors = []
        if self.program_size < 1:
            errors.append(f"bot.program_size must be >= 1, got {self.program_size}")
        if self.live_time < 1:
            errors.append(f"bot.live_time must be >= 1, got {self.live_time}")
        if self.die_time < 1:
            errors.append(f"bot.die_time must be >= 1, got {self.die_time}")
        if self.max_commands_per_step < 1:
            errors.append(f"bot.max_commands_per_step must be >= 1, got {self.max_commands_per_step}")
        if self.multiply_cost < 1:
            errors.append(f"bot.multiply_cost must be >= 1, got {self.multiply_cost}")
        if not (0.0 <= self.mutation_chance <= 1.0):
            errors.append(f"bot.mutation_chance must be in [0, 1], got {self.mutation_chance}")
        return errors


@dataclass
class OutputConfig:
    """Run length and output settings."""
    output_dir: str = "runs"
    max_ticks: int = 1000
    log_every_n_ticks: int = 1
    snapshot_every_n_ticks: int = 0   # 0 = no snapshots

    def validate(self) -> list[str]:
        errors = []
        if self.max_ticks < 1:
            errors.append(f"output.max_ticks must be >= 1, got {self.max_ticks}")
        if self.log_every_n_ticks < 1:
            errors.append(f"output.log_every_n_ticks must be >= 1, got {self.log_every_n_ticks}")
        if self.snapshot_every_n_ticks < 0:
            errors.append(f"output.snapshot_every_n_ticks must be >= 0, got {self.snapshot_every_n_ticks}")
        return errors


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass
class SimConfig:
    """
    Every tunable of a Cellbots run, grouped by section.

    Build one with defaults, read one from disk with `load_config()`, and
    call `check()` before handing it to a world or engine.
    """
    world: WorldConfig = field(default_factory=WorldConfig)
    population: PopulationConfig = field(default_factory=PopulationConfig)
    resources: ResourceConfig = field(default_factory=ResourceConfig)
    bot: BotConfig = field(default_factory=BotConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def sections(self) -> list[tuple[str, Any]]:
        return [(f.name, getattr(self, f.name)) for f in fields(self)]

    def validate(self) -> list[str]:
        """Problems found in every section, in declaration order (empty = valid)."""
        errors: list[str] = []
        for _, section in self.sections():
            errors += section.validate()
        return errors

    def check(self) -> None:
        """
        Raise if the config is invalid.

        Raises:
            ValueError: Listing every problem found.
        """
        errors = self.validate()
        if errors:
            lines = "\n".join(f"  - {e}" for e in errors)
            raise ValueError(f"Invalid configuration:\n{lines}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimConfig:
        """Defaults overlaid with whatever `data` provides."""
        config = cls()
        _merge_section(config, data, "config")
        return config

    def copy(self) -> SimConfig:
        return deepcopy(self)


# ---------------------------------------------------------------------------
# JSON I/O helpers
# ---------------------------------------------------------------------------

def _merge_section(target: Any, source: Any, path: str) -> None:
    """
    Overlay a parsed JSON object onto a dataclass, descending into
    nested sections. Keys the dataclass does not declare are reported
    with a UserWarning and skipped.
    """
    if not isinstance(source, dict):
        return

    declared = {f.name for f in fields(target)}
    for key, value in source.items():
        if key not in declared:
            warnings.warn(
                f"Unknown config key '{path}.{key}' in {type(target).__name__} - ignored.",
                UserWarning,
                stacklevel=3,
            )
            continue

        current = getattr(target, key)
        if is_dataclass(current):
            _merge_section(current, value, f"{path}.{key}")
        else:
            setattr(target, key, value)


def load_config(path: str | Path) -> SimConfig:
    """
    Read a JSON config; sections or fields it omits keep their defaults.

    Args:
        path: JSON file to read.

    Returns:
        A checked SimConfig.

    Raises:
        FileNotFoundError: If `path` is missing.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the resulting config fails `check()`.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = json.loads(path.read_text(encoding="utf-8"))
    config = SimConfig.from_dict(data)
    config.check()
    return config


def save_config(config: SimConfig, path: str | Path) -> None:
    """Write `config` as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")


def get_default_config() -> SimConfig:
    config = SimConfig()
    problems = config.validate()
    assert not problems, f"Built-in defaults are invalid: {problems}"
    return config


def apply_param_override(config: SimConfig, dotted_key: str, value: Any) -> None:
    """
    Set one field addressed as "section.field".

    Example:
        apply_param_override(config, "bot.multiply_cost", 6)
        apply_param_override(config, "world.topology", "vertical_wrap")

    Raises:
        KeyError: If any part of the path names no field.
    """
    parts = dotted_key.split(".")
    obj: Any = config
    for depth, part in enumerate(parts):
        if not hasattr(obj, part):
            raise KeyError(
                f"Config path '{dotted_key}' invalid: '{part}' not found in {type(obj).__name__}"
            )
        if depth < len(parts) - 1:
            obj = getattr(obj, part)
    setattr(obj, parts[-1], value)
