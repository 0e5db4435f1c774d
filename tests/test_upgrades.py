"""Unit tests for the version upgrade pipeline and the built-in scripts."""

from fractions import Fraction

import pytest

from mrdi import load_document
from mrdi.exceptions import DeserializationError
from mrdi.exceptions import UnsupportedVersionError
from mrdi.settings import MrdiSettings
from mrdi.upgrades import UpgradePipeline
from mrdi.upgrades import default_pipeline
from mrdi.upgrades import transform_nodes
from mrdi.versions import VERSION_NUMBER
from mrdi.versions import VersionNumber
from tests.examples.domain import Element
from tests.examples.domain import PolynomialRing

RING_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
ORIGIN = "https://pypi.org/project/mrdi/"


def v(text):
    return VersionNumber.parse(text)


class TestUpgradePipeline:
    """Tests for UpgradePipeline ordering and application."""

    def test_scripts_sorted_by_version(self):
        """Scripts run in version order, then registration order."""
        pipeline = UpgradePipeline()
        calls = []
        pipeline.register("0.3.0", lambda d, s: calls.append("c") or d)
        pipeline.register("0.2.0", lambda d, s: calls.append("a") or d)
        pipeline.register("0.2.0", lambda d, s: calls.append("b") or d)

        pipeline.upgrade(v("0.1.0"), {"_ns": {}})
        assert calls == ["a", "b", "c"]

    def test_only_newer_scripts_apply(self):
        """Scripts for versions at or below the stored one are skipped."""
        pipeline = UpgradePipeline()
        calls = []
        pipeline.register("0.2.0", lambda d, s: calls.append("0.2.0") or d)
        pipeline.register("0.3.0", lambda d, s: calls.append("0.3.0") or d)

        pipeline.upgrade(v("0.2.0"), {"_ns": {}})
        assert calls == ["0.3.0"]

    def test_input_not_modified(self):
        """The pipeline works on a deep copy."""
        pipeline = UpgradePipeline()

        @pipeline.script("0.2.0")
        def drop_data(document, settings):
            document["data"].clear()
            return document

        original = {"_ns": {"mrdi": ["", "0.1.0"]}, "data": {"x": 1}}
        upgraded = pipeline.upgrade(v("0.1.0"), original)
        assert original["data"] == {"x": 1}
        assert upgraded["data"] == {}

    def test_namespace_restamped(self):
        """Upgraded documents carry the current version."""
        upgraded = UpgradePipeline().upgrade(v("0.1.0"), {"_ns": {"mrdi": ["", "0.1.0"]}})
        assert upgraded["_ns"]["mrdi"][1] == str(VERSION_NUMBER)

    def test_scripts_receive_settings(self):
        """Each script gets the settings passed to upgrade."""
        pipeline = UpgradePipeline()
        seen = []
        pipeline.register("0.2.0", lambda d, s: seen.append(s.type_key) or d)

        pipeline.upgrade(v("0.1.0"), {"_ns": {}}, MrdiSettings(type_key="_t"))
        assert seen == ["_t"]

    def test_failing_script_wrapped(self):
        """Exceptions raised by a script become DeserializationError naming the script."""
        pipeline = UpgradePipeline()

        @pipeline.script("0.2.0")
        def needs_payload(document, settings):
            document["data"] = document.pop("payload")
            return document

        with pytest.raises(DeserializationError, match="needs_payload") as excinfo:
            pipeline.upgrade(v("0.1.0"), {"_ns": {}})
        assert isinstance(excinfo.value.__cause__, KeyError)
        assert excinfo.value.path == ()

    def test_too_old(self):
        """Documents older than minimum_version are refused."""
        with pytest.raises(UnsupportedVersionError):
            default_pipeline.upgrade(v("0.4.9"), {"_ns": {}})

    def test_transform_nodes_top_down(self):
        """Every dict is visited, parents before children."""
        seen = []

        def visit(node):
            seen.append(sorted(node))
            return node

        transform_nodes({"a": [{"b": 1}], "c": {"d": 2}}, visit)
        assert seen == [["a", "c"], ["b"], ["d"]]


class TestBuiltinScripts:
    """Tests for the upgrade scripts covering the format's history."""

    def legacy_document(self):
        return {
            "_ns": {"mrdi": [ORIGIN, {"major": 0, "minor": 8, "patch": 0}]},
            "type": "Element",
            "data": {"ring": RING_ID, "value": 3},
            "refs": [
                {
                    "id": RING_ID,
                    "type": "PolynomialRing",
                    "data": {
                        "base_ring": {"type": "RationalField"},
                        "var": {"type": "String", "data": "t"},
                    },
                }
            ],
        }

    def test_legacy_layout_upgraded(self):
        """Pre-0.9 keys are renamed and the reference list becomes a mapping."""
        upgraded = default_pipeline.upgrade(v("0.8.0"), self.legacy_document())
        assert upgraded["_type"] == "Element"
        assert "type" not in upgraded
        assert list(upgraded["_refs"]) == [RING_ID]
        definition = upgraded["_refs"][RING_ID]
        assert definition["_type"] == "PolynomialRing"
        assert definition["data"]["base_ring"] == {"_type": "RationalField"}

    def test_legacy_document_loads(self, reference_store):
        """A legacy document decodes like a current one."""
        loaded = load_document(self.legacy_document(), store=reference_store)
        assert isinstance(loaded, Element)
        assert isinstance(loaded.ring, PolynomialRing)
        assert loaded.ring.var == "t"
        assert loaded.value == 3

    def test_reference_list_keyed_by_id(self):
        """0.9 documents only need the reference section rewritten."""
        document = {
            "_ns": {"mrdi": ["", "0.9.0"]},
            "_type": "Element",
            "data": {"ring": RING_ID, "value": 1},
            "_refs": [{"id": RING_ID, "_type": "PolynomialRing", "data": {}}],
        }
        upgraded = default_pipeline.upgrade(v("0.9.0"), document)
        assert upgraded["_refs"] == {RING_ID: {"_type": "PolynomialRing", "data": {}}}

    def test_payload_dicts_untouched(self):
        """Dicts that are not typed nodes keep a 'type' key."""
        document = {
            "_ns": {"mrdi": ["", "0.8.0"]},
            "type": "Dict",
            "data": {"type": {"type": "String", "data": "x"}, "other": 1},
        }
        upgraded = default_pipeline.upgrade(v("0.8.0"), document)
        assert set(upgraded["data"]) == {"type", "other"}
        assert upgraded["data"]["type"] == {"_type": "String", "data": "x"}

    def test_legacy_type_key_follows_settings(self, reference_store):
        """Legacy nodes are renamed to the type key of the loading session."""
        document = {"_ns": {"mrdi": ["", "0.8.0"]}, "type": "Fraction", "data": "1/2"}
        settings = MrdiSettings(type_key="_t", refs_key="_r")

        upgraded = default_pipeline.upgrade(v("0.8.0"), document, settings)
        assert upgraded["_t"] == "Fraction"
        assert "_type" not in upgraded

        loaded = load_document(document, settings=settings, store=reference_store)
        assert loaded == Fraction(1, 2)

    def test_reference_without_id(self, reference_store):
        """A listed definition without an id fails with its position and the versions."""
        document = {
            "_ns": {"mrdi": ["", "0.9.5"]},
            "_type": "List",
            "data": [],
            "_refs": [{"_type": "Fraction", "data": "1/2"}],
        }
        with pytest.raises(DeserializationError, match="carries no 'id'") as excinfo:
            load_document(document, store=reference_store)
        assert excinfo.value.path == ("_refs", 0)
        assert excinfo.value.file_version == "0.9.5"
