"""Shared fixtures for Landscape Deploy tests."""

from unittest.mock import Mock

import pytest

from tests.helpers import listing, write_file


@pytest.fixture
def aws_env(monkeypatch):
    """Provide the AWS settings required to deploy."""
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "test-key")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "test-secret")


@pytest.fixture
def s3_client():
    """Mock S3 client with an empty bucket."""
    client = Mock()
    client.list_objects_v2.return_value = listing({})
    return client


@pytest.fixture
def landscape_dir(tmp_path):
    """Landscape directory with an index document."""
    root = tmp_path / "landscape"
    root.mkdir()
    write_file(root, "index.html", "<html></html>")
    return root
