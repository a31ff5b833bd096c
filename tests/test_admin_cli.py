"""
Admin CLI tests.

The CLI runs its own event loop, so these tests are synchronous: the
in-memory store is seeded directly and build_backend is patched to
return a backend over it.
"""

import asyncio
import json
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from adapters.aws import admin_cli
from adapters.local.memory_store import InMemoryObjectStore
from adapters.local.public_url_signer import PublicUrlSigner
from cms.backend.backend import ObjectStoreBackend
from cms.models.workflow import WorkflowMetadata
from cms.storage import metadata as codec

ENV = {"CMS_S3_BUCKET": "test-bucket", "CMS_USE_WORKFLOW": "true"}


def _seed(store, key, body=b"body", **fields):
    fields.setdefault("status", "draft")
    metadata = codec.encode(WorkflowMetadata(**fields))
    asyncio.run(store.put(key, body, "text/markdown", metadata=metadata))


# --- Fixtures ---


@pytest.fixture
def store():
    return InMemoryObjectStore()


@pytest.fixture
def runner(store, monkeypatch):
    built = {}

    def fake_build_backend(config, with_identity=True):
        built["config"] = config
        built["with_identity"] = with_identity
        return ObjectStoreBackend(config, store, PublicUrlSigner("https://cdn.example.com"))

    monkeypatch.setattr(admin_cli, "build_backend", fake_build_backend)
    cli_runner = CliRunner()
    cli_runner.built = built
    return cli_runner


# --- Commands ---


def test_unpublished(runner, store):
    _seed(store, "unpublished/blog/hello.md", slug="hello.md", collection="blog", title="Hello")

    result = runner.invoke(admin_cli.cli, ["unpublished"], env=ENV)

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == [{
        "collection": "blog",
        "slug": "hello.md",
        "status": "draft",
        "title": "Hello",
        "is_modification": False,
    }]
    assert runner.built["with_identity"] is False
    assert runner.built["config"].bucket == "test-bucket"


def test_set_status(runner, store):
    _seed(store, "unpublished/blog/hello.md", slug="hello.md", collection="blog")

    result = runner.invoke(admin_cli.cli, ["set-status", "blog", "hello.md", "ready"], env=ENV)

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "blog/hello.md: ready"
    assert store.objects["unpublished/blog/hello.md"].metadata["status"] == "ready"


def test_publish_twice(runner, store):
    _seed(store, "unpublished/blog/hello.md", slug="hello.md", collection="blog")

    first = runner.invoke(admin_cli.cli, ["publish", "blog", "hello.md"], env=ENV)
    second = runner.invoke(admin_cli.cli, ["publish", "blog", "hello.md"], env=ENV)

    assert first.output.strip() == "blog/hello.md: published"
    assert second.output.strip() == "blog/hello.md: already_published"
    assert "published/blog/hello.md" in store.objects


def test_reconcile_repair(runner, store):
    _seed(store, "unpublished/blog/stuck", slug="stuck", collection="blog")
    _seed(store, "published/blog/stuck", slug="stuck", collection="blog")

    result = runner.invoke(admin_cli.cli, ["--log-level", "ERROR", "reconcile", "--repair"], env=ENV)

    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["interrupted_publish"] == 1
    assert report["repaired"] == 1
    assert "unpublished/blog/stuck" not in store.objects


def test_migrate_legacy(runner, store):
    _seed(store, "unpublished/content/blog/x.md", collection="blog")

    result = runner.invoke(
        admin_cli.cli, ["migrate-legacy", "unpublished", "blog", "content/blog"], env=ENV,
    )

    assert result.exit_code == 0, result.output
    assert "unpublished/content/blog/x.md -> unpublished/blog/x.md" in result.output
    assert "Migrated 1 object(s)" in result.output


# --- Errors ---


def test_legacy_keys_suggest_migration(runner, store):
    _seed(store, "unpublished/content/blog/x.md", collection="blog")

    result = runner.invoke(admin_cli.cli, ["unpublished"], env=ENV)

    assert result.exit_code == 1
    assert "Next step: Run cms-admin migrate-legacy" in result.output


def test_missing_bucket_setting(runner):
    result = runner.invoke(admin_cli.cli, ["unpublished"], env={"CMS_S3_BUCKET": ""})

    assert result.exit_code == 1
    assert "configuration is incomplete" in result.output


def test_config_file(runner, tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("backend:\n  name: s3\n  bucket: from-file\npublish_mode: editorial_workflow\n")

    result = runner.invoke(admin_cli.cli, ["--config", str(path), "unpublished"])

    assert result.exit_code == 0, result.output
    assert runner.built["config"].bucket == "from-file"
    assert runner.built["config"].use_workflow is True


def test_env_file(runner, tmp_path):
    path = tmp_path / ".env"
    path.write_text("CMS_S3_BUCKET=from-env-file\nCMS_USE_WORKFLOW=true\n")

    result = runner.invoke(
        admin_cli.cli,
        ["--env-file", str(path), "unpublished"],
        env={"CMS_S3_BUCKET": None, "CMS_USE_WORKFLOW": None},
    )

    assert result.exit_code == 0, result.output
    assert runner.built["config"].bucket == "from-env-file"
