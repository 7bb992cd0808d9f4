"""
Tests for the hosted repository handler.

Drives HostedHandler through dispatch with HandlerRequest objects, the same
way the ASGI layer does, against an in-memory store.
"""
from __future__ import annotations

import hashlib

import pytest

from galaxy_registry.handlers.base import HandlerRequest, dispatch
from galaxy_registry.handlers.hosted import HostedHandler
from galaxy_registry.registry_types import CollectionIdentity
from galaxy_registry.response_builder import API_PREFIX
from galaxy_registry.storage.adapter import ContentStoreAdapter
from galaxy_registry.storage.artifact_path import build_path
from galaxy_registry.storage.file_store import FileContentStore

from .conftest import HOSTED_URL
from .fakes.failing_store import FailingContentStore
from .helpers.archives import build_collection_tarball, build_multipart_body, build_tarball

INDEX = f"{API_PREFIX}/collections/index"


def request(method="GET", path="/", tokens=None, query=None, body=b"", headers=None):
    return HandlerRequest(
        method=method,
        path=path,
        tokens=tokens or {},
        query=query or {},
        headers=headers or {},
        body=body,
        base_url=HOSTED_URL,
    )


def upload(handler, archive, headers=None):
    return dispatch(handler, request("POST", "/api/v3/artifacts/collections/", body=archive,
                                     headers=headers or {"Content-Type": "application/gzip"}))


def version_tokens(namespace="community", name="general", version="5.0.0"):
    return {"namespace": namespace, "name": name, "version": version}


class TestUpload:
    """Collection ingestion over POST."""

    def test_raw_upload(self, hosted_handler, adapter, collection_tarball):
        response = upload(hosted_handler, collection_tarball)

        assert response.status == 201
        doc = response.json()
        assert doc["namespace"] == "community"
        assert doc["name"] == "general"
        assert doc["version"] == "5.0.0"
        assert doc["artifact"]["filename"] == "community-general-5.0.0.tar.gz"
        assert doc["artifact"]["sha256"] == hashlib.sha256(collection_tarball).hexdigest()
        assert doc["artifact"]["size"] == len(collection_tarball)
        assert doc["download_url"] == f"{HOSTED_URL}{API_PREFIX}/collections/artifacts/community-general-5.0.0.tar.gz"

        stored = adapter.get("/collections/artifacts/community-general-5.0.0.tar.gz")
        assert stored.data == collection_tarball

    def test_multipart_upload(self, hosted_handler, adapter, collection_tarball):
        body, content_type = build_multipart_body(collection_tarball)
        response = upload(hosted_handler, body, headers={"content-type": content_type})

        assert response.status == 201
        path = build_path(CollectionIdentity("community", "general", "5.0.0"))
        assert adapter.get(path).data == collection_tarball

    def test_empty_body_is_bad_request(self, hosted_handler, adapter):
        response = upload(hosted_handler, b"")
        assert response.status == 400
        assert response.json()["errors"][0]["code"] == "invalid"
        assert adapter.list_all() == []

    def test_malformed_multipart_is_bad_request(self, hosted_handler):
        response = upload(hosted_handler, b"no boundary here",
                          headers={"Content-Type": "multipart/form-data"})
        assert response.status == 400

    def test_archive_without_manifest_is_server_error(self, hosted_handler, adapter):
        response = upload(hosted_handler, build_tarball({"README.md": b"hi"}))
        assert response.status == 500
        error = response.json()["errors"][0]
        assert error["status"] == "500"
        assert "MANIFEST.json" in error["detail"]
        assert adapter.list_all() == []

    def test_corrupt_archive_is_server_error(self, hosted_handler, adapter):
        response = upload(hosted_handler, b"definitely not gzip")
        assert response.status == 500
        assert adapter.list_all() == []

    def test_republish_replaces_content(self, hosted_handler, adapter):
        first = build_collection_tarball("ns", "name", "1.0.0")
        second = build_collection_tarball("ns", "name", "1.0.0", prefix="ns-name-1.0.0/")
        upload(hosted_handler, first)
        upload(hosted_handler, second)

        assert adapter.get(build_path(CollectionIdentity("ns", "name", "1.0.0"))).data == second
        assert len(adapter.list_all()) == 1

    def test_store_failure_is_service_unavailable(self, collection_tarball):
        handler = HostedHandler(ContentStoreAdapter(FailingContentStore()))
        assert upload(handler, collection_tarball).status == 503


class TestDownload:
    def test_download(self, hosted_handler, collection_tarball):
        upload(hosted_handler, collection_tarball)
        response = dispatch(hosted_handler, request(tokens={"filename": "community-general-5.0.0.tar.gz"}))

        assert response.status == 200
        assert response.body == collection_tarball
        assert response.content_type == "application/gzip"
        assert response.headers["Content-Length"] == str(len(collection_tarball))

    def test_download_missing(self, hosted_handler):
        response = dispatch(hosted_handler, request(tokens={"filename": "nope-nope-1.0.0.tar.gz"}))
        assert response.status == 404
        assert response.json()["errors"][0]["code"] == "not_found"

    @pytest.mark.parametrize("filename", ["x.tar.gz.meta.json", ".."])
    def test_download_unstorable_name_is_not_found(self, tmp_path, filename):
        handler = HostedHandler(ContentStoreAdapter(FileContentStore(tmp_path)))
        response = dispatch(handler, request(tokens={"filename": filename}))
        assert response.status == 404

    def test_head_dispatches_like_get(self, hosted_handler, collection_tarball):
        upload(hosted_handler, collection_tarball)
        response = dispatch(hosted_handler, request("HEAD", tokens={"filename": "community-general-5.0.0.tar.gz"}))
        assert response.status == 200


class TestDelete:
    def test_delete_existing(self, hosted_handler, adapter, collection_tarball):
        upload(hosted_handler, collection_tarball)
        response = dispatch(hosted_handler, request("DELETE", tokens=version_tokens()))

        assert response.status == 204
        assert response.body == b""
        assert adapter.list_all() == []

    def test_delete_missing(self, hosted_handler):
        response = dispatch(hosted_handler, request("DELETE", tokens=version_tokens()))
        assert response.status == 404


class TestListings:
    """Listing and detail documents computed from the store."""

    @pytest.fixture(autouse=True)
    def seeded(self, hosted_handler):
        for namespace, name, version in [
            ("community", "general", "5.0.0"),
            ("community", "general", "6.1.0"),
            ("ansible", "posix", "1.5.4"),
        ]:
            assert upload(hosted_handler, build_collection_tarball(namespace, name, version)).status == 201

    def test_collection_list(self, hosted_handler):
        response = dispatch(hosted_handler, request(path=f"{INDEX}/"))
        assert response.status == 200
        assert response.content_type == "application/json"
        doc = response.json()
        assert doc["meta"]["count"] == 2
        assert doc["data"][0]["highest_version"]["version"] == "6.1.0"
        assert doc["data"][0]["href"].startswith(HOSTED_URL)

    def test_collection_list_pagination_params(self, hosted_handler):
        response = dispatch(hosted_handler, request(query={"offset": "1", "limit": "1"}))
        doc = response.json()
        assert [c["name"] for c in doc["data"]] == ["posix"]
        assert "next" not in doc["links"]

    def test_non_numeric_params_use_defaults(self, hosted_handler):
        response = dispatch(hosted_handler, request(query={"offset": "abc", "limit": "x"}))
        doc = response.json()
        assert len(doc["data"]) == 2
        assert doc["links"]["first"].endswith("?offset=0&limit=100")

    def test_collection_detail(self, hosted_handler):
        response = dispatch(hosted_handler, request(tokens={"namespace": "community", "name": "general"}))
        assert response.status == 200
        assert response.json()["highest_version"]["version"] == "6.1.0"

    def test_collection_detail_missing(self, hosted_handler):
        response = dispatch(hosted_handler, request(tokens={"namespace": "community", "name": "missing"}))
        assert response.status == 404

    def test_version_list(self, hosted_handler):
        tokens = {"namespace": "community", "name": "general", "version_marker": "versions"}
        doc = dispatch(hosted_handler, request(tokens=tokens)).json()
        assert [v["version"] for v in doc["data"]] == ["5.0.0", "6.1.0"]

    def test_version_detail(self, hosted_handler):
        response = dispatch(hosted_handler, request(tokens=version_tokens(version="6.1.0")))
        assert response.status == 200
        doc = response.json()
        assert doc["version"] == "6.1.0"
        assert doc["artifact"]["size"] > 0
        assert len(doc["artifact"]["sha256"]) == 64

    def test_version_detail_missing(self, hosted_handler):
        response = dispatch(hosted_handler, request(tokens=version_tokens(version="9.9.9")))
        assert response.status == 404

    def test_listing_reflects_delete(self, hosted_handler):
        dispatch(hosted_handler, request("DELETE", tokens=version_tokens(version="6.1.0")))
        doc = dispatch(hosted_handler, request()).json()
        assert doc["data"][0]["highest_version"]["version"] == "5.0.0"


class TestMethodNotAllowed:
    def test_put_rejected(self, hosted_handler):
        response = dispatch(hosted_handler, request("PUT"))
        assert response.status == 405
        assert response.headers["Allow"] == "GET, HEAD, POST, DELETE"
