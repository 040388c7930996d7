"""
Unit tests for the configuration system.

Tests cover:
- Default config creation and validation
- JSON load/save roundtrip
- Partial config loading (missing fields use defaults)
- Invalid value detection
- Unknown key warnings
- Dot-notation parameter overrides
"""

import json
import warnings
from pathlib import Path

import pytest

from cellbots.core.config import (
    SimConfig,
    WorldConfig,
    PopulationConfig,
    ResourceConfig,
    BotConfig,
    OutputConfig,
    load_config,
    save_config,
    get_default_config,
    apply_param_override,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def default_config() -> SimConfig:
    """Fresh default config."""
    return get_default_config()


@pytest.fixture
def tmp_config_path(tmp_path) -> Path:
    return tmp_path / "test_config.json"


@pytest.fixture
def minimal_config_path(tmp_path) -> Path:
    """Config file with only a few overrides."""
    path = tmp_path / "minimal.json"
    data = {
        "world": {"width": 40, "height": 30, "topology": "bounded"},
        "bot": {"multiply_cost": 6},
    }
    path.write_text(json.dumps(data))
    return path


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

class TestDefaults:
    def test_default_is_valid(self, default_config):
        assert default_config.validate() == []

    def test_world_defaults(self, default_config):
        w = default_config.world
        assert (w.width, w.height) == (100, 100)
        assert w.seed == 92
        assert w.topology == "torus"
        assert w.storage == "dense"

    def test_population_defaults(self, default_config):
        assert default_config.population.initial_count == 400
        assert default_config.population.initial_protein == 0

    def test_resource_defaults(self, default_config):
        r = default_config.resources
        assert r.free_protein == 300_000
        assert r.oxygen == 100_000
        assert r.carbon == 100_000

    def test_bot_defaults(self, default_config):
        b = default_config.bot
        assert b.program_size == 5
        assert b.live_time == 160
        assert b.die_time == 320
        assert b.max_commands_per_step == 2
        assert b.multiply_cost == 4
        assert b.mutation_chance == pytest.approx(1 / 3)

    def test_output_defaults(self, default_config):
        o = default_config.output
        assert o.max_ticks == 1000
        assert o.log_every_n_ticks == 1
        assert o.snapshot_every_n_ticks == 0

    def test_sections_are_independent(self):
        a = SimConfig()
        b = SimConfig()
        a.world.width = 7
        assert b.world.width == 100


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    def test_bad_width(self):
        errors = WorldConfig(width=0).validate()
        assert any("world.width" in e for e in errors)

    def test_unknown_topology(self):
        errors = WorldConfig(topology="mobius").validate()
        assert any("world.topology" in e for e in errors)

    def test_unknown_storage(self):
        errors = WorldConfig(storage="octree").validate()
        assert any("world.storage" in e for e in errors)

    def test_dense_unbounded_rejected(self):
        errors = WorldConfig(topology="unbounded", storage="dense").validate()
        assert len(errors) == 1
        assert "unbounded" in errors[0]

    def test_sparse_unbounded_accepted(self):
        assert WorldConfig(topology="unbounded", storage="sparse").validate() == []

    def test_negative_population(self):
        assert PopulationConfig(initial_count=-1).validate()
        assert PopulationConfig(initial_protein=-1).validate()

    def test_zero_population_is_valid(self):
        assert PopulationConfig(initial_count=0).validate() == []

    def test_negative_resources(self):
        errors = ResourceConfig(oxygen=-5).validate()
        assert errors == ["resources.oxygen must be >= 0, got -5"]

    @pytest.mark.parametrize("name", [
        "program_size", "live_time", "die_time",
        "max_commands_per_step", "multiply_cost",
    ])
    def test_bot_minimums(self, name):
        cfg = BotConfig()
        setattr(cfg, name, 0)
        assert any(f"bot.{name}" in e for e in cfg.validate())

    def test_mutation_chance_range(self):
        assert BotConfig(mutation_chance=1.5).validate()
        assert BotConfig(mutation_chance=-0.1).validate()
        assert BotConfig(mutation_chance=0.0).validate() == []

    def test_output_ranges(self):
        assert OutputConfig(max_ticks=0).validate()
        assert OutputConfig(log_every_n_ticks=0).validate()
        assert OutputConfig(snapshot_every_n_ticks=-1).validate()

    def test_errors_collected_across_sections(self):
        config = SimConfig()
        config.world.width = 0
        config.bot.die_time = 0
        assert len(config.validate()) == 2

    def test_check_raises_with_every_error(self):
        config = SimConfig()
        config.world.width = 0
        config.resources.carbon = -1
        with pytest.raises(ValueError) as exc_info:
            config.check()
        message = str(exc_info.value)
        assert message.startswith("Invalid configuration:")
        assert "world.width" in message
        assert "resources.carbon" in message

    def test_check_passes_on_valid(self, default_config):
        default_config.check()


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------

class TestJsonIO:
    def test_roundtrip(self, default_config, tmp_config_path):
        default_config.world.topology = "horizontal_wrap"
        default_config.bot.mutation_chance = 0.25
        save_config(default_config, tmp_config_path)
        loaded = load_config(tmp_config_path)
        assert loaded == default_config

    def test_saved_file_is_nested(self, default_config, tmp_config_path):
        save_config(default_config, tmp_config_path)
        data = json.loads(tmp_config_path.read_text())
        assert set(data) == {"world", "population", "resources", "bot", "output"}
        assert data["world"]["seed"] == 92

    def test_save_creates_parent_dirs(self, default_config, tmp_path):
        path = tmp_path / "a" / "b" / "config.json"
        save_config(default_config, path)
        assert path.exists()

    def test_partial_config(self, minimal_config_path):
        config = load_config(minimal_config_path)
        assert config.world.width == 40
        assert config.world.height == 30
        assert config.world.topology == "bounded"
        assert config.bot.multiply_cost == 6
        # untouched fields keep defaults
        assert config.world.seed == 92
        assert config.bot.live_time == 160

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.json")

    def test_malformed_json(self, tmp_config_path):
        tmp_config_path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            load_config(tmp_config_path)

    def test_invalid_values_rejected_on_load(self, tmp_config_path):
        tmp_config_path.write_text(json.dumps(
            {"world": {"topology": "unbounded", "storage": "dense"}}
        ))
        with pytest.raises(ValueError, match="unbounded"):
            load_config(tmp_config_path)

    def test_unknown_key_warns(self, tmp_config_path):
        tmp_config_path.write_text(json.dumps({"world": {"depth": 3}}))
        with pytest.warns(UserWarning, match="depth"):
            config = load_config(tmp_config_path)
        assert not hasattr(config.world, "depth")

    def test_unknown_section_warns(self):
        with pytest.warns(UserWarning, match="genetics"):
            SimConfig.from_dict({"genetics": {}})

    def test_known_keys_do_not_warn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            SimConfig.from_dict({"output": {"max_ticks": 5}})

    def test_copy_is_deep(self, default_config):
        clone = default_config.copy()
        clone.resources.oxygen = 1
        assert default_config.resources.oxygen == 100_000


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------

class TestParamOverride:
    def test_nested_override(self, default_config):
        apply_param_override(default_config, "population.initial_count", 1000)
        assert default_config.population.initial_count == 1000

    def test_override_string(self, default_config):
        apply_param_override(default_config, "world.storage", "sparse")
        assert default_config.world.storage == "sparse"

    def test_bad_section(self, default_config):
        with pytest.raises(KeyError):
            apply_param_override(default_config, "genome.size", 3)

    def test_bad_field(self, default_config):
        with pytest.raises(KeyError):
            apply_param_override(default_config, "bot.lifespan", 3)
