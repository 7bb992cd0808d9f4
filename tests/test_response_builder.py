"""
Tests for Galaxy v3 response synthesis.

Exercises grouping, semantic-version ranking, pagination windows and link
generation over snapshots of stored artifacts.
"""
from __future__ import annotations

import json

import pytest

from galaxy_registry.registry_types import CollectionIdentity, PaginationWindow
from galaxy_registry.response_builder import (
    API_PREFIX,
    GalaxyResponseBuilder,
    build_links,
    highest_semver,
)
from galaxy_registry.storage.artifact_path import build_path
from galaxy_registry.storage.base import BlobInfo, StoredArtifact

BASE = "http://localhost:8080/repository/galaxy"


def artifact(namespace: str, name: str, version: str, sha256: str = None, size: int = 0) -> StoredArtifact:
    identity = CollectionIdentity(namespace, name, version)
    blob = BlobInfo(size=size, checksums={"sha256": sha256}) if sha256 else None
    return StoredArtifact(identity=identity, path=build_path(identity), blob=blob)


class TestHighestSemver:
    """Test semantic version ranking."""

    def test_picks_highest(self):
        assert highest_semver(["1.0.0", "2.1.0", "1.5.3", "2.0.9"]) == "2.1.0"

    def test_numeric_not_lexicographic(self):
        assert highest_semver(["1.9.0", "1.10.0"]) == "1.10.0"

    def test_prerelease_suffix_ignored(self):
        """Only the leading digits of the patch segment count."""
        assert highest_semver(["1.0.0-beta1", "0.9.0"]) == "1.0.0-beta1"

    def test_tie_keeps_first_seen(self):
        assert highest_semver(["1.0.0-rc1", "1.0.0"]) == "1.0.0-rc1"
        assert highest_semver(["1.0.0", "1.0.0-rc1"]) == "1.0.0"

    def test_non_conforming_excluded(self):
        assert highest_semver(["1.0", "1.0.0.0", "abc", "0.1.0"]) == "0.1.0"

    def test_non_numeric_major_excluded(self):
        assert highest_semver(["v1.0.0", "a.b.c", "1.x.0"]) is None

    def test_nothing_qualifies(self):
        assert highest_semver(["abc"]) is None
        assert highest_semver([]) is None


class TestPaginationWindow:
    """Test window clamping."""

    def test_non_positive_limit_defaults(self):
        assert PaginationWindow.clamp(0, 0, 10).limit == 100
        assert PaginationWindow.clamp(0, -5, 10).limit == 100

    def test_negative_offset_clamped(self):
        assert PaginationWindow.clamp(-3, 10, 10).offset == 0

    def test_offset_past_end_clamped(self):
        window = PaginationWindow.clamp(50, 10, 7)
        assert window.offset == 7
        assert window.end == 7


class TestBuildLinks:
    """Test pagination link generation."""

    def test_single_page(self):
        links = build_links(BASE, "/x/", PaginationWindow.clamp(0, 10, 5))
        assert links.first == f"{BASE}/x/?offset=0&limit=10"
        assert links.last == f"{BASE}/x/?offset=0&limit=10"
        assert links.previous is None
        assert links.next is None

    def test_middle_page(self):
        links = build_links(BASE, "/x/", PaginationWindow.clamp(10, 10, 35))
        assert links.previous == f"{BASE}/x/?offset=0&limit=10"
        assert links.next == f"{BASE}/x/?offset=20&limit=10"
        assert links.last == f"{BASE}/x/?offset=30&limit=10"

    def test_last_page_boundary(self):
        links = build_links(BASE, "/x/", PaginationWindow.clamp(20, 10, 30))
        assert links.next is None
        assert links.last == f"{BASE}/x/?offset=20&limit=10"

    def test_empty_listing(self):
        links = build_links(BASE, "/x/", PaginationWindow.clamp(0, 0, 0))
        assert links.last == f"{BASE}/x/?offset=0&limit=100"
        assert links.next is None

    def test_previous_never_negative(self):
        links = build_links(BASE, "/x/", PaginationWindow.clamp(5, 10, 30))
        assert links.previous == f"{BASE}/x/?offset=0&limit=10"


class TestCollectionList:
    """Test the paginated collection listing."""

    def test_groups_and_ranks(self, builder):
        artifacts = [
            artifact("community", "general", "5.0.0"),
            artifact("ansible", "posix", "1.5.4"),
            artifact("community", "general", "6.1.0"),
            artifact("community", "general", "5.9.9"),
        ]
        doc = json.loads(builder.build_collection_list(BASE, artifacts))

        assert doc["meta"] == {"count": 2}
        assert [c["name"] for c in doc["data"]] == ["general", "posix"]
        general = doc["data"][0]
        assert general["namespace"] == "community"
        assert general["deprecated"] is False
        assert general["href"] == f"{BASE}{API_PREFIX}/collections/index/community/general/"
        assert general["versions_url"] == f"{BASE}{API_PREFIX}/collections/index/community/general/versions/"
        assert general["highest_version"] == {
            "version": "6.1.0",
            "href": f"{BASE}{API_PREFIX}/collections/index/community/general/versions/6.1.0/",
        }

    def test_highest_version_omitted_when_unranked(self, builder):
        doc = json.loads(builder.build_collection_list(BASE, [artifact("ns", "name", "latest")]))
        assert "highest_version" not in doc["data"][0]

    def test_pagination_slice(self, builder):
        artifacts = [artifact("ns", f"c{i}", "1.0.0") for i in range(5)]
        doc = json.loads(builder.build_collection_list(BASE, artifacts, offset=2, limit=2))
        assert [c["name"] for c in doc["data"]] == ["c2", "c3"]
        assert doc["meta"]["count"] == 5
        links = doc["links"]
        prefix = f"{BASE}{API_PREFIX}/collections/index/"
        assert links["first"] == f"{prefix}?offset=0&limit=2"
        assert links["previous"] == f"{prefix}?offset=0&limit=2"
        assert links["next"] == f"{prefix}?offset=4&limit=2"
        assert links["last"] == f"{prefix}?offset=4&limit=2"

    def test_empty_store(self, builder):
        doc = json.loads(builder.build_collection_list(BASE, []))
        assert doc["meta"] == {"count": 0}
        assert doc["data"] == []
        assert "previous" not in doc["links"]
        assert "next" not in doc["links"]

    def test_pretty_printed(self, builder):
        text = builder.build_collection_list(BASE, [])
        assert text.startswith("{\n  ")


class TestCollectionDetail:
    def test_detail(self, builder):
        artifacts = [artifact("ns", "name", "1.0.0"), artifact("ns", "name", "1.2.0"), artifact("x", "y", "9.9.9")]
        doc = json.loads(builder.build_collection_detail(BASE, "ns", "name", artifacts))
        assert doc["name"] == "name"
        assert doc["highest_version"]["version"] == "1.2.0"


class TestVersionList:
    def test_versions_in_store_order(self, builder):
        artifacts = [
            artifact("ns", "name", "2.0.0"),
            artifact("other", "thing", "1.0.0"),
            artifact("ns", "name", "1.0.0"),
        ]
        doc = json.loads(builder.build_version_list(BASE, "ns", "name", artifacts))
        assert doc["meta"] == {"count": 2}
        assert doc["data"] == [
            {"version": "2.0.0", "href": f"{BASE}{API_PREFIX}/collections/index/ns/name/versions/2.0.0/"},
            {"version": "1.0.0", "href": f"{BASE}{API_PREFIX}/collections/index/ns/name/versions/1.0.0/"},
        ]
        assert doc["links"]["first"] == f"{BASE}{API_PREFIX}/collections/index/ns/name/versions/?offset=0&limit=100"

    def test_unknown_collection_is_empty(self, builder):
        doc = json.loads(builder.build_version_list(BASE, "no", "such", [artifact("ns", "name", "1.0.0")]))
        assert doc["meta"] == {"count": 0}
        assert doc["data"] == []


class TestVersionDetail:
    def test_detail_with_blob(self, builder):
        stored = artifact("ns", "name", "1.0.0", sha256="ab" * 32, size=1234)
        doc = json.loads(builder.build_version_detail(BASE, stored.identity, stored))
        assert doc["href"] == f"{BASE}{API_PREFIX}/collections/index/ns/name/versions/1.0.0/"
        assert doc["download_url"] == f"{BASE}{API_PREFIX}/collections/artifacts/ns-name-1.0.0.tar.gz"
        assert doc["artifact"] == {"filename": "ns-name-1.0.0.tar.gz", "sha256": "ab" * 32, "size": 1234}
        assert doc["collection"] == {
            "href": f"{BASE}{API_PREFIX}/collections/index/ns/name/",
            "namespace": "ns",
            "name": "name",
        }

    def test_missing_blob_yields_null_checksum(self, builder):
        identity = CollectionIdentity("ns", "name", "1.0.0")
        doc = json.loads(builder.build_version_detail(BASE, identity, None))
        assert doc["artifact"] == {"filename": "ns-name-1.0.0.tar.gz", "sha256": None, "size": 0}

    @pytest.mark.parametrize("key", ["SHA256", "Sha256"])
    def test_checksum_lookup_case_insensitive(self, builder, key):
        identity = CollectionIdentity("ns", "name", "1.0.0")
        stored = StoredArtifact(identity, build_path(identity), BlobInfo(size=3, checksums={key: "ff" * 32}))
        doc = json.loads(builder.build_version_detail(BASE, identity, stored))
        assert doc["artifact"]["sha256"] == "ff" * 32
