"""Tests for byte sources."""

import numpy as np
import pytest

from epsilon_suite.errors import InvalidParameterError, SourceUnavailableError
from epsilon_suite.sources import ALL_SOURCES, FileSource, MemorySource, open_source
from epsilon_suite.sources.base import ByteSource


class TestFileSource:
    def test_reads_sequentially(self, tmp_path):
        path = tmp_path / "bytes.bin"
        path.write_bytes(bytes(range(10)))
        with FileSource(path) as src:
            first = src.read(4)
            rest = src.read(100)
            assert src.read(4).size == 0
        assert first.dtype == np.uint8
        assert first.tolist() == [0, 1, 2, 3]
        assert rest.tolist() == list(range(4, 10))

    def test_is_available(self, tmp_path):
        path = tmp_path / "bytes.bin"
        assert not FileSource(path).is_available()
        path.write_bytes(b"x")
        assert FileSource(path).is_available()

    def test_open_missing(self, tmp_path):
        with pytest.raises(SourceUnavailableError):
            FileSource(tmp_path / "nope.bin").open()

    def test_open_directory(self, tmp_path):
        with pytest.raises(SourceUnavailableError):
            FileSource(tmp_path).open()

    def test_read_before_open(self, tmp_path):
        path = tmp_path / "bytes.bin"
        path.write_bytes(b"abc")
        with pytest.raises(SourceUnavailableError):
            FileSource(path).read(1)

    def test_unavailable_is_an_oserror(self, tmp_path):
        with pytest.raises(OSError):
            FileSource(tmp_path / "nope.bin").open()


class TestMemorySource:
    def test_from_array(self):
        src = MemorySource(np.array([1, 2, 3], dtype=np.uint8))
        with src:
            assert src.read(2).tolist() == [1, 2]
            assert src.read(2).tolist() == [3]
        assert len(src) == 3

    def test_rejects_values_outside_a_byte(self):
        with pytest.raises(InvalidParameterError):
            MemorySource(np.array([1, 300]))

    def test_read_when_closed(self):
        with pytest.raises(SourceUnavailableError):
            MemorySource(b"abc").read(1)


class TestOpenSource:
    def test_path(self, tmp_path):
        assert isinstance(open_source(tmp_path / "x.bin"), FileSource)
        assert isinstance(open_source(str(tmp_path / "x.bin")), FileSource)

    def test_buffers(self):
        assert isinstance(open_source(b"ab"), MemorySource)
        assert isinstance(open_source(bytearray(b"ab")), MemorySource)
        assert isinstance(open_source(np.zeros(3, dtype=np.uint8)), MemorySource)

    def test_passthrough(self):
        src = MemorySource(b"")
        assert open_source(src) is src

    def test_unsupported(self):
        with pytest.raises(TypeError):
            open_source(42)


class TestAllSourcesMetadata:
    """Every source class must have required metadata."""

    @pytest.mark.parametrize("cls", ALL_SOURCES, ids=lambda c: c.name)
    def test_is_byte_source(self, cls):
        assert issubclass(cls, ByteSource)

    @pytest.mark.parametrize("cls", ALL_SOURCES, ids=lambda c: c.name)
    def test_has_name(self, cls):
        assert isinstance(cls.name, str) and len(cls.name) > 0

    @pytest.mark.parametrize("cls", ALL_SOURCES, ids=lambda c: c.name)
    def test_has_description(self, cls):
        assert isinstance(cls.description, str) and cls.description
