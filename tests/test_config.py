"""Tests for run configuration."""

from pathlib import Path

import pytest

from epsilon_suite.config import SuiteConfig, load_config
from epsilon_suite.errors import InvalidConfigurationError


class TestSuiteConfig:
    def test_defaults(self):
        cfg = SuiteConfig()
        assert cfg.block_size_bits == 8192
        assert cfg.bits_per_test == 8192
        assert cfg.template_length == 9
        assert cfg.n_blocks == 8
        assert cfg.significance_level == 0.01

    def test_template_sets_length(self):
        assert SuiteConfig(template="0011").template_length == 4

    @pytest.mark.parametrize("kwargs", [
        {"block_size_bits": 12},
        {"block_size_bits": 0},
        {"n": 0},
        {"n": 9000},
        {"m": 0},
        {"m": 22},
        {"template": "0x1"},
        {"m": 3, "template": "001"},
        {"template_index": -1},
        {"n_blocks": 0},
        {"significance_level": 0.0},
        {"significance_level": 1.5},
        {"max_blocks": -1},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(InvalidConfigurationError):
            SuiteConfig(**kwargs)

    def test_overrides_skip_none(self):
        cfg = SuiteConfig(n=1000).with_overrides(n=None, m=5)
        assert cfg.n == 1000
        assert cfg.m == 5

    def test_m_override_clears_template(self):
        cfg = SuiteConfig(template="001").with_overrides(m=4)
        assert cfg.template is None
        assert cfg.template_length == 4

    def test_template_override_clears_m(self):
        cfg = SuiteConfig(m=4).with_overrides(template="00001")
        assert cfg.m is None
        assert cfg.template_length == 5


class TestLoadConfig:
    def test_reads_section(self, tmp_path):
        path = tmp_path / "suite.ini"
        path.write_text("[suite]\nblock_size_bits = 16384\nn = 10000\nm = 10\n"
                        "significance_level = 0.001\nmax_blocks = 0\n")
        cfg = load_config(path)
        assert cfg.block_size_bits == 16384
        assert cfg.n == 10000
        assert cfg.m == 10
        assert cfg.significance_level == 0.001
        assert cfg.max_blocks == 0

    def test_blank_values_use_defaults(self, tmp_path):
        path = tmp_path / "suite.ini"
        path.write_text("[suite]\nn =\n")
        assert load_config(path) == SuiteConfig()

    def test_relative_template_dir(self, tmp_path):
        path = tmp_path / "suite.ini"
        path.write_text("[suite]\ntemplate_dir = templates\n")
        assert load_config(path).template_dir == (tmp_path / "templates").resolve()

    def test_absolute_template_dir(self, tmp_path):
        target = tmp_path / "abs"
        path = tmp_path / "suite.ini"
        path.write_text(f"[suite]\ntemplate_dir = {target}\n")
        assert load_config(path).template_dir == Path(target)

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidConfigurationError):
            load_config(tmp_path / "none.ini")

    def test_missing_section(self, tmp_path):
        path = tmp_path / "suite.ini"
        path.write_text("[other]\nn = 1\n")
        with pytest.raises(InvalidConfigurationError, match=r"\[suite\]"):
            load_config(path)

    def test_malformed(self, tmp_path):
        path = tmp_path / "suite.ini"
        path.write_text("n = 1\n")
        with pytest.raises(InvalidConfigurationError):
            load_config(path)

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "suite.ini"
        path.write_text("[suite]\nwindow = 3\n")
        with pytest.raises(InvalidConfigurationError, match="window"):
            load_config(path)

    def test_bad_value(self, tmp_path):
        path = tmp_path / "suite.ini"
        path.write_text("[suite]\nn = lots\n")
        with pytest.raises(InvalidConfigurationError, match="n"):
            load_config(path)

    def test_inconsistent_values(self, tmp_path):
        path = tmp_path / "suite.ini"
        path.write_text("[suite]\nm = 3\ntemplate = 001\n")
        with pytest.raises(InvalidConfigurationError):
            load_config(path)
