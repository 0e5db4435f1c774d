"""Tests for document metadata."""

import io

import pytest

from mrdi import MetaData
from mrdi import metadata
from mrdi import read_metadata
from mrdi import save
from mrdi.metadata import meta_block


class TestMetaData:
    """Tests for MetaData and the meta block."""

    def test_constructor(self):
        """metadata() builds a MetaData."""
        meta = metadata(author_orcid="0000-0000-0000-0042", name="42", description="answer")
        assert meta == MetaData("0000-0000-0000-0042", "42", "answer")

    def test_unknown_field(self):
        """Only the known fields are accepted."""
        with pytest.raises(TypeError):
            metadata(colour="red")

    def test_meta_block(self):
        """Unset fields are omitted; empty metadata writes nothing."""
        assert meta_block(MetaData(name="x")) == {"name": "x"}
        assert meta_block(MetaData()) is None
        assert meta_block({"custom": [1, 2]}) == {"custom": [1, 2]}
        assert meta_block(None) is None


class TestReadMetadata:
    """Tests for read_metadata."""

    def test_from_path(self, tmp_path):
        """Metadata is read back from a file."""
        path = tmp_path / "fourtytwo.mrdi"
        save(path, 42, metadata=metadata(name="42", description="The meaning of life"))
        assert read_metadata(path) == {"name": "42", "description": "The meaning of life"}

    def test_from_stream(self):
        """Metadata is read back from a stream."""
        buffer = io.StringIO()
        save(buffer, 42, metadata={"name": "42"})
        buffer.seek(0)
        assert read_metadata(buffer) == {"name": "42"}

    def test_without_metadata(self, tmp_path):
        """Documents without metadata yield an empty mapping."""
        path = tmp_path / "plain.mrdi"
        save(path, 1)
        assert read_metadata(str(path)) == {}
