"""Shared fixtures for the deploy pipeline tests."""

import httpx
import pytest

from deploy_pipeline.config import Credentials, PipelineConfig

STORE_PASSWORD = "store-s3cret"
SERVER_PASSWORD = "manager-s3cret"


@pytest.fixture
def http_client():
    """Factory for httpx clients backed by a request handler."""
    clients = []

    def _make(handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def make_config(tmp_path):
    """Factory for a PipelineConfig pointing at fake hosts."""

    def _make(**overrides) -> PipelineConfig:
        values = dict(
            store_url="http://nexus.test",
            store_credentials=Credentials("deployer", STORE_PASSWORD),
            group_id="com.example",
            artifact_id="app",
            server_url="http://host",
            server_credentials=Credentials("manager", SERVER_PASSWORD),
            run_number=42,
            workspace=tmp_path / "workspace",
            scratch_dir=tmp_path / "scratch",
            commit_ref="abc123",
            grace_seconds=0,
        )
        values.update(overrides)
        return PipelineConfig(**values)

    return _make
