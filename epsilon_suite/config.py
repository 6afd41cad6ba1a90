"""Run configuration: defaults, INI loading and command-line overrides."""

from __future__ import annotations

import configparser
import dataclasses
from dataclasses import dataclass
from pathlib import Path

from epsilon_suite.bitstream import DEFAULT_BLOCK_SIZE_BITS
from epsilon_suite.errors import InvalidConfigurationError, InvalidParameterError
from epsilon_suite.template_matching import DEFAULT_BLOCK_COUNT
from epsilon_suite.templates import Template, check_template_length
from epsilon_suite.test_suite import DEFAULT_SIGNIFICANCE_LEVEL

DEFAULT_TEMPLATE_LENGTH = 9
CONFIG_SECTION = "suite"


@dataclass(frozen=True)
class SuiteConfig:
    """Everything a run needs besides the input itself.

    ``n = None`` tests every bit of each block. When neither ``m`` nor
    ``template`` is set, templates of length 9 are used. ``max_blocks = 0``
    tests every block of the input.
    """

    block_size_bits: int = DEFAULT_BLOCK_SIZE_BITS
    n: int | None = None
    m: int | None = None
    template: str | None = None
    template_index: int = 0
    template_dir: Path | None = None
    n_blocks: int = DEFAULT_BLOCK_COUNT
    significance_level: float = DEFAULT_SIGNIFICANCE_LEVEL
    max_blocks: int = 1

    def __post_init__(self) -> None:
        if self.block_size_bits <= 0 or self.block_size_bits % 8:
            raise InvalidConfigurationError(
                f"block_size_bits must be a positive multiple of 8, got {self.block_size_bits}")
        if self.n is not None and not 0 < self.n <= self.block_size_bits:
            raise InvalidConfigurationError(
                f"n must be between 1 and block_size_bits ({self.block_size_bits}), got {self.n}")
        if self.m is not None and self.template is not None:
            raise InvalidConfigurationError("set either m or template, not both")
        try:
            if self.m is not None:
                check_template_length(self.m)
            if self.template is not None:
                Template.parse(self.template)
        except InvalidParameterError as exc:
            raise InvalidConfigurationError(str(exc)) from exc
        if self.template_index < 0:
            raise InvalidConfigurationError("template_index must be >= 0")
        if self.n_blocks < 1:
            raise InvalidConfigurationError("n_blocks must be >= 1")
        if not 0.0 < self.significance_level < 1.0:
            raise InvalidConfigurationError(
                f"significance_level must be in (0, 1), got {self.significance_level}")
        if self.max_blocks < 0:
            raise InvalidConfigurationError("max_blocks must be >= 0")

    @property
    def bits_per_test(self) -> int:
        return self.n if self.n is not None else self.block_size_bits

    @property
    def template_length(self) -> int:
        if self.template is not None:
            return Template.parse(self.template).m
        return self.m if self.m is not None else DEFAULT_TEMPLATE_LENGTH

    def with_overrides(self, **overrides) -> "SuiteConfig":
        """Copy with every non-``None`` override applied.

        Setting ``m`` clears a configured ``template`` and vice versa, so a
        command-line choice always wins over the file.
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "m" in changes and "template" not in changes:
            changes["template"] = None
        if "template" in changes and "m" not in changes:
            changes["m"] = None
        return dataclasses.replace(self, **changes)


def _get(section, key, convert):
    raw = section.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return convert(raw.strip())
    except ValueError as exc:
        raise InvalidConfigurationError(f"[{CONFIG_SECTION}] {key}: {exc}") from exc


def load_config(path: str | Path) -> SuiteConfig:
    """Read the ``[suite]`` section of an INI file.

    Relative ``template_dir`` values are resolved against the file's directory.
    """
    path = Path(path)
    parser = configparser.ConfigParser()
    try:
        with open(path, encoding="utf-8") as fh:
            parser.read_file(fh)
    except OSError as exc:
        raise InvalidConfigurationError(f"cannot read configuration {path}: {exc}") from exc
    except configparser.Error as exc:
        raise InvalidConfigurationError(f"malformed configuration {path}: {exc}") from exc
    if not parser.has_section(CONFIG_SECTION):
        raise InvalidConfigurationError(f"{path} has no [{CONFIG_SECTION}] section")
    section = parser[CONFIG_SECTION]

    known = {f.name for f in dataclasses.fields(SuiteConfig)}
    unknown = set(section) - known
    if unknown:
        raise InvalidConfigurationError(
            f"unknown option(s) in [{CONFIG_SECTION}]: {', '.join(sorted(unknown))}")

    template_dir = _get(section, "template_dir", Path)
    if template_dir is not None and not template_dir.is_absolute():
        template_dir = (path.parent / template_dir).resolve()

    values = {
        "block_size_bits": _get(section, "block_size_bits", int),
        "n": _get(section, "n", int),
        "m": _get(section, "m", int),
        "template": _get(section, "template", str),
        "template_index": _get(section, "template_index", int),
        "template_dir": template_dir,
        "n_blocks": _get(section, "n_blocks", int),
        "significance_level": _get(section, "significance_level", float),
        "max_blocks": _get(section, "max_blocks", int),
    }
    return SuiteConfig().with_overrides(**values)
