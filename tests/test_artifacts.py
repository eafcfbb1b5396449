"""Unit tests for the artifacts module."""

import httpx
import pytest

from deploy_pipeline.artifacts import (
    ArtifactFetcher,
    ArtifactLocator,
    ArtifactPublisher,
    ArtifactRef,
    ArtifactStoreError,
    DownloadError,
    NotFoundError,
    PublishError,
    artifact_version,
)

STORE = "http://nexus.test"
BASE = f"{STORE}/repository/maven-releases/com/example/app"


def _asset(version: str, ext: str = "war") -> dict:
    return {"downloadUrl": f"{BASE}/{version}/app-{version}.{ext}", "path": f"app-{version}.{ext}"}


def _ref(version: str = "0.0.3") -> ArtifactRef:
    return ArtifactRef(
        group_id="com.example",
        artifact_id="app",
        version=version,
        extension="war",
        download_url=f"{BASE}/{version}/app-{version}.war",
    )


class TestArtifactVersion:
    def test_format(self):
        assert artifact_version(42) == "0.0.42"

    def test_unique_and_increasing(self):
        versions = [artifact_version(n) for n in range(0, 200)]
        assert len(set(versions)) == len(versions)
        keys = [tuple(int(p) for p in v.split(".")) for v in versions]
        assert keys == sorted(keys)
        assert all(a < b for a, b in zip(keys, keys[1:]))

    @pytest.mark.parametrize("bad", [-1, "42", 1.5, True])
    def test_rejects_invalid(self, bad):
        with pytest.raises(ValueError):
            artifact_version(bad)


class TestArtifactRef:
    def test_filename(self):
        assert _ref("0.0.7").filename == "app-0.0.7.war"

    def test_dict_round_trip(self):
        ref = _ref()
        assert ArtifactRef.from_dict(ref.to_dict()) == ref


class TestArtifactLocator:
    def _locator(self, http_client, pages: list[dict], seen: list | None = None):
        def handler(request: httpx.Request) -> httpx.Response:
            if seen is not None:
                seen.append(request)
            token = request.url.params.get("continuationToken")
            index = int(token) if token else 0
            return httpx.Response(200, json=pages[index])

        return ArtifactLocator(STORE, "maven-releases", client=http_client(handler))

    def test_last_match_in_listing_order_wins(self, http_client):
        page = {"items": [_asset("1"), _asset("2"), _asset("3")], "continuationToken": None}
        ref = self._locator(http_client, [page]).locate("com.example", "app", "war")
        assert ref.version == "3"
        assert ref.download_url.endswith("/app-3.war")

    def test_listing_order_beats_numeric_order(self, http_client):
        page = {"items": [_asset("0.0.9"), _asset("0.0.10"), _asset("0.0.2")]}
        ref = self._locator(http_client, [page]).locate("com.example", "app", "war")
        assert ref.version == "0.0.2"

    def test_ignores_non_matching_assets(self, http_client):
        page = {
            "items": [
                _asset("0.0.1"),
                _asset("0.0.2", ext="war.sha1"),
                _asset("0.0.2", ext="pom"),
                {"downloadUrl": f"{BASE}-admin/0.0.5/app-admin-0.0.5.war"},
                {"path": "no-download-url"},
            ]
        }
        ref = self._locator(http_client, [page]).locate("com.example", "app", "war")
        assert ref.version == "0.0.1"

    def test_follows_continuation_tokens(self, http_client):
        pages = [
            {"items": [_asset("0.0.1")], "continuationToken": "1"},
            {"items": [_asset("0.0.2")], "continuationToken": "2"},
            {"items": [], "continuationToken": None},
        ]
        seen = []
        ref = self._locator(http_client, pages, seen).locate("com.example", "app", "war")
        assert ref.version == "0.0.2"
        assert len(seen) == 3

    def test_sends_search_parameters(self, http_client):
        seen = []
        page = {"items": [_asset("0.0.1")]}
        self._locator(http_client, [page], seen).locate("com.example", "app", "war")
        request = seen[0]
        assert request.url.path == "/service/rest/v1/search/assets"
        assert request.url.params["repository"] == "maven-releases"
        assert request.url.params["maven.groupId"] == "com.example"
        assert request.url.params["maven.artifactId"] == "app"
        assert request.url.params["maven.extension"] == "war"

    def test_no_match_raises_not_found(self, http_client):
        locator = self._locator(http_client, [{"items": []}])
        with pytest.raises(NotFoundError) as exc_info:
            locator.locate("com.example", "app", "war")
        assert exc_info.value.repository == "maven-releases"

    def test_listing_error_raises_store_error(self, http_client):
        client = http_client(lambda request: httpx.Response(500))
        locator = ArtifactLocator(STORE, "maven-releases", client=client)
        with pytest.raises(ArtifactStoreError) as exc_info:
            locator.locate("com.example", "app", "war")
        assert exc_info.value.status_code == 500

    def test_connection_error_raises_store_error(self, http_client):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        locator = ArtifactLocator(STORE, "maven-releases", client=http_client(handler))
        with pytest.raises(ArtifactStoreError):
            locator.locate("com.example", "app", "war")


class TestArtifactFetcher:
    def test_downloads_and_replaces_stale_files(self, http_client, tmp_path):
        scratch = tmp_path / "scratch"
        scratch.mkdir()
        (scratch / "app-0.0.1.war").write_bytes(b"old")
        (scratch / "notes.txt").write_text("keep me")

        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, content=b"new-war")

        path = ArtifactFetcher(client=http_client(handler)).fetch(_ref("0.0.3"), scratch)

        assert path == scratch / "app-0.0.3.war"
        assert path.read_bytes() == b"new-war"
        assert not (scratch / "app-0.0.1.war").exists()
        assert (scratch / "notes.txt").exists()
        assert seen == [_ref("0.0.3").download_url]

    def test_creates_scratch_directory(self, http_client, tmp_path):
        scratch = tmp_path / "a" / "b"
        client = http_client(lambda request: httpx.Response(200, content=b"x"))
        path = ArtifactFetcher(client=client).fetch(_ref(), scratch)
        assert path.exists()

    def test_http_error_raises_and_leaves_nothing(self, http_client, tmp_path):
        client = http_client(lambda request: httpx.Response(404))
        with pytest.raises(DownloadError) as exc_info:
            ArtifactFetcher(client=client).fetch(_ref(), tmp_path)
        assert exc_info.value.status_code == 404
        assert list(tmp_path.glob("*.war")) == []

    def test_transport_error_raises_download_error(self, http_client, tmp_path):
        def handler(request):
            raise httpx.ReadError("connection reset")

        with pytest.raises(DownloadError):
            ArtifactFetcher(client=http_client(handler)).fetch(_ref(), tmp_path)
        assert list(tmp_path.glob("*.war")) == []


class TestArtifactPublisher:
    def test_upload_url_layout(self):
        publisher = ArtifactPublisher(STORE + "/", "maven-releases")
        assert publisher.upload_url("com.example", "app", "0.0.42", "war") == (
            f"{BASE}/0.0.42/app-0.0.42.war"
        )

    def test_publish_puts_file(self, http_client, tmp_path):
        archive = tmp_path / "app-1.2.war"
        archive.write_bytes(b"war-bytes")
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201)

        publisher = ArtifactPublisher(STORE, "maven-releases", client=http_client(handler))
        url = publisher.publish(archive, "com.example", "app", "0.0.42")

        assert url == f"{BASE}/0.0.42/app-0.0.42.war"
        assert seen[0].method == "PUT"
        assert str(seen[0].url) == url
        assert seen[0].content == b"war-bytes"
        assert seen[0].headers["Content-Length"] == "9"

    def test_duplicate_version_raises(self, http_client, tmp_path):
        archive = tmp_path / "app-1.2.war"
        archive.write_bytes(b"war-bytes")
        client = http_client(lambda request: httpx.Response(400, text="Repository does not allow updating assets"))
        publisher = ArtifactPublisher(STORE, "maven-releases", client=client)
        with pytest.raises(PublishError) as exc_info:
            publisher.publish(archive, "com.example", "app", "0.0.42")
        assert exc_info.value.status_code == 400

    def test_missing_file_raises(self, http_client, tmp_path):
        client = http_client(lambda request: httpx.Response(201))
        publisher = ArtifactPublisher(STORE, "maven-releases", client=client)
        with pytest.raises(PublishError):
            publisher.publish(tmp_path / "missing.war", "com.example", "app", "0.0.42")
