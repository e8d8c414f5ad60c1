#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SourceGetter Test Suite - Version Catalog Tests

Tests for catalog loading, validation and URL construction.
"""

import json
import os

import pytest

from version_catalog import DEFAULT_CATALOG, BuildId, VersionCatalog
from sourcegetter_errors import CatalogError


def _write(temp_dir, text):
    path = os.path.join(temp_dir, "catalog.json")
    with open(path, "w") as f:
        f.write(text)
    return path


class TestDefaultCatalog:
    """Tests for the bundled server_builds.json"""

    def test_loads(self):
        catalog = VersionCatalog.load(DEFAULT_CATALOG)
        assert len(catalog) == 19
        assert catalog.resolve(0) == BuildId("1423")
        assert catalog.resolve(18) == BuildId("1449")

    def test_url(self):
        catalog = VersionCatalog.load(DEFAULT_CATALOG)
        assert catalog.url_for(catalog.resolve(17)) == (
            "https://terraria.org/api/download/pc-dedicated-server/"
            "terraria-server-14481.zip"
        )
        assert catalog.file_stem_for(catalog.resolve(17)) == "terraria-server-14481"

    def test_stable_resolution(self):
        first = VersionCatalog.load(DEFAULT_CATALOG)
        second = VersionCatalog.load(DEFAULT_CATALOG)
        assert [first.resolve(k) for k in range(len(first))] == [
            second.resolve(k) for k in range(len(second))
        ]

    def test_out_of_range(self):
        catalog = VersionCatalog.load(DEFAULT_CATALOG)
        with pytest.raises(IndexError):
            catalog.resolve(len(catalog))
        with pytest.raises(IndexError):
            catalog.resolve(-1)


class TestValidation:
    """Tests for catalog configuration errors"""

    def test_duplicate_key(self, temp_dir):
        path = _write(
            temp_dir,
            '{"url_template": "u/{version}", "builds": '
            '{"0": {"version": "1"}, "11": {"version": "131"}, '
            '"11": {"version": "131"}}}',
        )
        with pytest.raises(CatalogError, match="Duplicate"):
            VersionCatalog.load(path)

    def test_non_contiguous(self):
        with pytest.raises(CatalogError, match="contiguous"):
            VersionCatalog.from_dict(
                {"url_template": "u/{version}", "builds": {"0": "1", "2": "3"}}
            )

    def test_missing_template(self):
        with pytest.raises(CatalogError):
            VersionCatalog.from_dict({"builds": {"0": "1"}})

    def test_empty_builds(self):
        with pytest.raises(CatalogError):
            VersionCatalog.from_dict({"url_template": "u", "builds": {}})

    def test_invalid_json(self, temp_dir):
        with pytest.raises(CatalogError):
            VersionCatalog.load(_write(temp_dir, "{not json"))


class TestTemplates:
    """Tests for URL template handling"""

    def test_archive_field(self):
        catalog = VersionCatalog.from_dict(
            {
                "url_template": "https://host/{archive:03d}/terraria-server-{version}.zip",
                "builds": {"0": {"version": "1353", "archive": 7}},
            }
        )
        assert catalog.url_for(catalog.resolve(0)) == (
            "https://host/007/terraria-server-1353.zip"
        )

    def test_archive_missing(self):
        catalog = VersionCatalog.from_dict(
            {"url_template": "https://host/{archive}/{version}", "builds": {"0": "1"}}
        )
        with pytest.raises(CatalogError):
            catalog.url_for(catalog.resolve(0))

    def test_override_template(self, temp_dir):
        path = _write(
            temp_dir,
            json.dumps({"url_template": "old/{version}", "builds": {"0": "1449"}}),
        )
        catalog = VersionCatalog.load(path, url_template="new/{version}.zip")
        assert catalog.url_for(catalog.resolve(0)) == "new/1449.zip"
