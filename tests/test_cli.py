"""Tests for the CLI."""

import numpy as np
from click.testing import CliRunner

from epsilon_suite.cli import main


def _random_file(path, n_bytes, seed=0):
    path.write_bytes(np.random.default_rng(seed).integers(0, 256, n_bytes, dtype=np.uint8)
                     .tobytes())
    return path


class TestCLI:
    def test_version(self):
        r = CliRunner().invoke(main, ["--version"])
        assert r.exit_code == 0
        assert "0.1.0" in r.output

    def test_run(self, tmp_path):
        path = _random_file(tmp_path / "data.bin", 4096)
        r = CliRunner().invoke(main, ["run", str(path), "--blocks", "0"])
        assert r.exit_code == 0, r.output
        assert "Non-overlapping Template Matching" in r.output
        assert "4 sequence(s)" in r.output
        assert "Proportion passing" in r.output
        assert "Uniformity P-value_T" in r.output

    def test_run_explicit_template(self, tmp_path):
        path = _random_file(tmp_path / "data.bin", 1024)
        r = CliRunner().invoke(main, ["run", str(path), "--template", "0001", "--n", "4096"])
        assert r.exit_code == 0, r.output
        assert "template=0001" in r.output

    def test_run_sweep(self, tmp_path):
        path = _random_file(tmp_path / "data.bin", 1024)
        r = CliRunner().invoke(main, ["run", str(path), "--sweep", "--m", "4"])
        assert r.exit_code == 0, r.output
        assert "6 templates" in r.output
        assert "/6 passed" in r.output

    def test_run_sweep_rejects_explicit_template(self, tmp_path):
        path = _random_file(tmp_path / "data.bin", 1024)
        r = CliRunner().invoke(main, ["run", str(path), "--sweep", "--template", "111",
                                      "--limit", "3"])
        assert r.exit_code == 1
        assert "--sweep" in r.output
        assert "sweep (" not in r.output

    def test_run_limit_requires_sweep(self, tmp_path):
        path = _random_file(tmp_path / "data.bin", 1024)
        r = CliRunner().invoke(main, ["run", str(path), "--limit", "3"])
        assert r.exit_code == 1
        assert "--limit" in r.output

    def test_run_skips_short_block(self, tmp_path):
        path = _random_file(tmp_path / "data.bin", 1024 + 100)
        r = CliRunner().invoke(main, ["run", str(path), "--blocks", "0"])
        assert r.exit_code == 0, r.output
        assert "1 sequence(s)" in r.output
        assert "skipping short final block" in r.output

    def test_run_report(self, tmp_path):
        path = _random_file(tmp_path / "data.bin", 1024)
        out = tmp_path / "report.md"
        r = CliRunner().invoke(main, ["run", str(path), "--output", str(out)])
        assert r.exit_code == 0, r.output
        assert out.exists()
        assert "Report saved to" in r.output

    def test_run_config(self, tmp_path):
        path = _random_file(tmp_path / "data.bin", 256)
        cfg = tmp_path / "suite.ini"
        cfg.write_text("[suite]\nblock_size_bits = 1024\nm = 3\n")
        r = CliRunner().invoke(main, ["run", str(path), "--config", str(cfg)])
        assert r.exit_code == 0, r.output
        assert "m=3" in r.output
        assert "M=128" in r.output

    def test_run_missing_file(self, tmp_path):
        r = CliRunner().invoke(main, ["run", str(tmp_path / "missing.bin")])
        assert r.exit_code == 1
        assert "Error" in r.output

    def test_run_input_too_short(self, tmp_path):
        path = tmp_path / "tiny.bin"
        path.write_bytes(b"\x01\x02")
        r = CliRunner().invoke(main, ["run", str(path)])
        assert r.exit_code == 1

    def test_run_bad_template(self, tmp_path):
        path = _random_file(tmp_path / "data.bin", 1024)
        r = CliRunner().invoke(main, ["run", str(path), "--template", "012"])
        assert r.exit_code == 1
        assert "Error" in r.output

    def test_templates(self):
        r = CliRunner().invoke(main, ["templates", "9", "--limit", "3"])
        assert r.exit_code == 0
        assert "148 template(s) of length 9" in r.output
        assert "000000001" in r.output

    def test_templates_invalid_length(self):
        r = CliRunner().invoke(main, ["templates", "30"])
        assert r.exit_code == 1

    def test_probe(self, tmp_path):
        path = _random_file(tmp_path / "data.bin", 2500)
        r = CliRunner().invoke(main, ["probe", str(path)])
        assert r.exit_code == 0
        assert "Full blocks: 2" in r.output
        assert "Short block: 3,616 bits" in r.output
        assert "Sequential reads from a binary file" in r.output

    def test_probe_missing_file(self, tmp_path):
        r = CliRunner().invoke(main, ["probe", str(tmp_path / "missing.bin")])
        assert r.exit_code == 1
        assert "not a readable file" in r.output
