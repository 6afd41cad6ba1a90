"""CLI for epsilon-suite."""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

import click

from epsilon_suite import __version__
from epsilon_suite.errors import (
    InsufficientDataError,
    InvalidConfigurationError,
    InvalidParameterError,
    SourceUnavailableError,
)


@click.group()
@click.version_option(__version__)
def main() -> None:
    """🎲 epsilon-suite: NIST-style randomness tests for bit streams."""


# ────────────────────────────────────────────────────────────
# Run: template matching over successive blocks
# ────────────────────────────────────────────────────────────


@main.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="INI file with a [suite] section.")
@click.option("--n", "n", type=int, default=None, help="Bits per tested sequence (default: whole block).")
@click.option("--m", "m", type=int, default=None, help="Template length; template taken from the library.")
@click.option("--template", default=None, help="Explicit template, e.g. 000000001.")
@click.option("--index", "template_index", type=int, default=None, help="Library template index.")
@click.option("--template-dir", type=click.Path(file_okay=False), default=None,
              help="Directory of NIST template files (templateM).")
@click.option("--block-size", "block_size_bits", type=int, default=None,
              help="Bits read per block; each block is one sequence.")
@click.option("--blocks", "max_blocks", type=int, default=None, help="Blocks to test (0 = all).")
@click.option("--alpha", "significance_level", type=float, default=None, help="Significance level.")
@click.option("--sweep", is_flag=True, help="Test every library template of length m.")
@click.option("--limit", type=int, default=None,
              help="Maximum templates in a sweep (requires --sweep).")
@click.option("--output", "output_path", default=None, help="Write a Markdown report here.")
@click.option("-v", "--verbose", count=True, help="-v for diagnostics, -vv for debug logging.")
def run(path: str, config_path: str | None, n: int | None, m: int | None,
        template: str | None, template_index: int | None, template_dir: str | None,
        block_size_bits: int | None, max_blocks: int | None,
        significance_level: float | None, sweep: bool, limit: int | None,
        output_path: str | None, verbose: int) -> None:
    """Run the non-overlapping template matching test on PATH."""
    from epsilon_suite.bitstream import BitStreamSource
    from epsilon_suite.config import SuiteConfig, load_config
    from epsilon_suite.report import generate_report
    from epsilon_suite.stats import proportion_passing, uniformity_p_value
    from epsilon_suite.test_suite import run_battery

    _configure_logging(verbose)
    try:
        cfg = load_config(config_path) if config_path else SuiteConfig()
        cfg = cfg.with_overrides(
            n=n, m=m, template=template, template_index=template_index,
            template_dir=Path(template_dir) if template_dir else None,
            block_size_bits=block_size_bits,
            max_blocks=max_blocks, significance_level=significance_level,
        )
        library = _make_library(cfg.template_dir)
    except (InvalidConfigurationError, SourceUnavailableError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if sweep and cfg.template is not None:
        click.echo("Error: --sweep tests library templates; use --m instead of --template.", err=True)
        sys.exit(1)
    if limit is not None and not sweep:
        click.echo("Error: --limit only applies to --sweep.", err=True)
        sys.exit(1)

    tests = []
    t0 = time.monotonic()
    try:
        with BitStreamSource.open(path, cfg.block_size_bits) as src:
            while cfg.max_blocks == 0 or len(tests) < cfg.max_blocks:
                if not src.next_block():
                    break
                try:
                    tests.append(_make_test(src, cfg, library, sweep, limit))
                except InsufficientDataError as e:
                    click.echo(f"  skipping short final block: {e}")
                    break
    except (InvalidParameterError, SourceUnavailableError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not tests:
        click.echo(f"No sequence of {cfg.bits_per_test:,} bits could be read from {path}.")
        sys.exit(1)

    click.echo(f"🎲 {tests[0].describe()}")
    click.echo(f"   {len(tests)} sequence(s) from {path}\n")

    results = run_battery(tests, cfg.significance_level, collect_diagnostics=verbose > 0)
    elapsed = time.monotonic() - t0

    click.echo(f"{'Block':>6} {'Result':>7} {'Grade':>6} {'P-Value':>10}  Details")
    click.echo("-" * 60)
    for i, r in enumerate(results, 1):
        status = "PASS" if r.passed else "FAIL"
        p_str = f"{r.p_value:.6f}" if r.p_value is not None else "N/A"
        click.echo(f"{i:>6} {status:>7} {r.grade:>6} {p_str:>10}  {r.details}")

    p_values = [p for r in results if r.error is None for p in r.p_values]
    if p_values:
        summary = proportion_passing(p_values, cfg.significance_level)
        click.echo(f"\nProportion passing: {summary.passed}/{summary.total} = "
                   f"{summary.proportion:.4f} (acceptable {summary.lower:.4f}-{summary.upper:.4f})")
        click.echo(f"Uniformity P-value_T: {uniformity_p_value(p_values):.6f}")
    click.echo(f"Elapsed: {elapsed:.2f}s")

    if output_path:
        generate_report(path, results, cfg.significance_level, output_path)
        click.echo(f"\n📄 Report saved to: {output_path}")

    if any(r.error is not None for r in results):
        sys.exit(1)


# ────────────────────────────────────────────────────────────
# Templates & probe
# ────────────────────────────────────────────────────────────


@main.command()
@click.argument("m", type=int)
@click.option("--limit", type=int, default=20, help="Templates to list (0 = all).")
@click.option("--template-dir", type=click.Path(file_okay=False), default=None,
              help="Directory of NIST template files (templateM).")
def templates(m: int, limit: int, template_dir: str | None) -> None:
    """List the aperiodic templates of length M."""
    try:
        library = _make_library(template_dir)
        total = library.count(m)
        click.echo(f"{total:,} template(s) of length {m}:")
        for i, t in enumerate(library.iter(m, limit or None)):
            click.echo(f"  {i:>6}  {t}")
    except (InvalidParameterError, SourceUnavailableError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--block-size", "block_size_bits", default=8192, help="Bits per block.")
def probe(path: str, block_size_bits: int) -> None:
    """Show how PATH splits into blocks of bits."""
    from epsilon_suite.bitstream import BitStreamSource
    from epsilon_suite.sources import open_source

    source = open_source(path)
    if not source.is_available():
        click.echo(f"Error: {path} is not a readable file.", err=True)
        sys.exit(1)

    full = 0
    last = 0
    try:
        with BitStreamSource.open(source, block_size_bits) as src:
            kind = src.source.description
            for block in src.blocks():
                last = len(block)
                if last == block_size_bits:
                    full += 1
            total_bytes = src.bytes_consumed
    except (InvalidParameterError, SourceUnavailableError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Source:      {path} ({kind})")
    click.echo(f"Bytes:       {total_bytes:,}")
    click.echo(f"Bits:        {total_bytes * 8:,}")
    click.echo(f"Block size:  {block_size_bits:,} bits")
    click.echo(f"Full blocks: {full}")
    if last and last != block_size_bits:
        click.echo(f"Short block: {last:,} bits")


# ────────────────────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────────────────────


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING if verbose <= 0 else logging.INFO if verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _make_library(template_dir):
    from epsilon_suite.templates import DEFAULT_LIBRARY, TemplateLibrary

    if template_dir is None:
        return DEFAULT_LIBRARY
    return TemplateLibrary.from_directory(template_dir)


def _make_test(src, cfg, library, sweep: bool, limit: int | None):
    """Build the configured test over the block currently held by *src*."""
    from epsilon_suite.template_matching import NonOverlappingTemplateMatchingTest, TemplateSweepTest

    n = cfg.bits_per_test
    if sweep:
        return TemplateSweepTest(src, n, cfg.template_length, library=library, limit=limit,
                                 n_blocks=cfg.n_blocks)
    if cfg.template is not None:
        return NonOverlappingTemplateMatchingTest(src, n, cfg.template, n_blocks=cfg.n_blocks)
    return NonOverlappingTemplateMatchingTest(src, n, m=cfg.template_length,
                                              template_index=cfg.template_index,
                                              library=library, n_blocks=cfg.n_blocks)
