"""Tests for supported-file detection."""

from __future__ import annotations

import pytest

from repoinsight.catalog import file_type_for, filter_supported, is_supported
from repoinsight.models import FileEntry, FileType


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Invoice.cls", FileType.APEX),
        ("InvoiceTrigger.trigger", FileType.APEX),
        ("Checkout.page", FileType.VISUALFORCE),
        ("Header.component", FileType.VISUALFORCE),
        ("invoiceList.js", FileType.JAVASCRIPT),
        ("invoiceList.html", FileType.LWC),
        ("InvoiceApp.cmp", FileType.AURA),
        ("README.md", FileType.UNKNOWN),
        ("Makefile", FileType.UNKNOWN),
    ],
)
def test_file_type_for_maps_extensions(name: str, expected: FileType) -> None:
    assert file_type_for(name) is expected


def test_extension_match_is_case_insensitive() -> None:
    assert is_supported("Invoice.CLS")
    assert file_type_for("Invoice.CLS") is FileType.APEX


def test_metadata_sidecars_are_not_supported() -> None:
    assert not is_supported("Invoice.cls-meta.xml")


def test_filter_supported_preserves_order_and_skips_directories() -> None:
    entries = [
        FileEntry(name="b.js", path="lwc/b.js"),
        FileEntry(name="classes", path="classes", type="dir"),
        FileEntry(name="README.md", path="README.md"),
        FileEntry(name="A.cls", path="classes/A.cls"),
        FileEntry(name="odd.cls", path="odd.cls", type="dir"),
    ]

    assert [entry.name for entry in filter_supported(entries)] == ["b.js", "A.cls"]
