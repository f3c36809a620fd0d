"""Tests for ONIX version detection."""

from __future__ import annotations

import pytest

from onixport.onix.version import (
    detect_onix_version,
    estimate_product_count,
    is_version_supported,
    namespace_for,
)
from tests.conftest import ONIX21_REFERENCE, ONIX21_SHORT, ONIX30_NS, onix3_message, onix3_product


class TestDetectOnixVersion:
    """Tests for detect_onix_version."""

    def test_onix31_namespace(self) -> None:
        """The 3.1 reference namespace identifies 3.1."""
        assert detect_onix_version(onix3_message(onix3_product())) == "3.1"

    def test_onix30_namespace(self) -> None:
        """The 3.0 reference namespace identifies 3.0."""
        xml = onix3_message(onix3_product(), namespace=ONIX30_NS, release="3.0")
        assert detect_onix_version(xml) == "3.0"

    def test_namespace_wins_over_release(self) -> None:
        """Namespace has priority over a contradicting release attribute."""
        xml = onix3_message(onix3_product(), namespace=ONIX30_NS, release="3.1")
        assert detect_onix_version(xml) == "3.0"

    @pytest.mark.parametrize(
        ("release", "expected"), [("3.0", "3.0"), ("3.1", "3.1"), ("3.0.8", "3.0"), ("3.2", "3.1")]
    )
    def test_release_attribute(self, release: str, expected: str) -> None:
        """Without a namespace the release attribute decides."""
        xml = f'<ONIXMessage release="{release}"><Header/></ONIXMessage>'
        assert detect_onix_version(xml) == expected

    def test_doctype_is_21(self) -> None:
        """A 2.1 DOCTYPE identifies 2.1."""
        assert detect_onix_version(ONIX21_REFERENCE) == "2.1"

    def test_short_tags_are_21(self) -> None:
        """Short-tag documents are 2.1."""
        assert detect_onix_version(ONIX21_SHORT) == "2.1"

    def test_bare_root_is_21(self) -> None:
        """A namespace-free ONIXMessage root with no release is 2.1."""
        assert detect_onix_version("<ONIXMessage><Header/></ONIXMessage>") == "2.1"

    @pytest.mark.parametrize("xml", ["<catalog><book/></catalog>", "", "plain text"])
    def test_unknown(self, xml: str) -> None:
        """Non-ONIX documents are unknown."""
        assert detect_onix_version(xml) == "unknown"

    def test_only_head_is_inspected(self) -> None:
        """Markers beyond the detection window are ignored."""
        xml = "<catalog>" + " " * 5000 + "<ONIXMessage release='3.1'/></catalog>"
        assert detect_onix_version(xml) == "unknown"


class TestHelpers:
    """Tests for version helpers."""

    def test_estimate_product_count(self) -> None:
        """Both reference and short-tag product tags are counted."""
        xml = onix3_message(onix3_product(), onix3_product(record_reference="ref-2"))
        assert estimate_product_count(xml) == 2
        assert estimate_product_count(ONIX21_SHORT) == 1

    def test_estimate_ignores_product_prefixed_tags(self) -> None:
        """ProductIdentifier and friends are not counted."""
        assert estimate_product_count("<ProductIdentifier/><ProductForm/>") == 0

    def test_namespace_for(self) -> None:
        """Namespaces follow the EDItEUR reference pattern."""
        assert namespace_for("3.1") == "http://ns.editeur.org/onix/3.1/reference"

    def test_is_version_supported(self) -> None:
        """Only 2.1, 3.0 and 3.1 are supported."""
        assert is_version_supported("2.1")
        assert not is_version_supported("unknown")
        assert not is_version_supported(None)
