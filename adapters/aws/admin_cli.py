"""
CMS admin CLI.

Operator tooling for the bucket, using the ambient AWS credential chain
(no Cognito login):

    cms-admin unpublished
    cms-admin set-status blog hello.md review
    cms-admin publish blog hello.md
    cms-admin reconcile --repair
    cms-admin migrate-legacy unpublished blog content/blog

Configuration comes from --config (a CMS config.yml) or CMS_* env vars,
optionally seeded from --env-file.
"""

import asyncio
import json
import logging

import click

from adapters.aws.factory import build_backend
from adapters.local.env_file import load_env_file
from cms import __version__
from cms.errors.exceptions import CmsError
from cms.errors.handler import ErrorHandler
from cms.models.config import BackendConfig
from cms.storage.keyspace import Namespace

error_handler = ErrorHandler()


def _run_async(coro):
    return asyncio.run(coro)


def _format_raw_json(data) -> str:
    return json.dumps(data, indent=2, default=str)


def _load_config(config_path):
    if config_path:
        return BackendConfig.from_yaml(config_path)
    return BackendConfig.from_env()


def _execute(ctx: click.Context, context: str, make_coro):
    """Build the backend, run one operation, render CMS errors for operators."""
    try:
        backend = build_backend(_load_config(ctx.obj["config_path"]), with_identity=False)
        return _run_async(make_coro(backend))
    except CmsError as e:
        for line in error_handler.handle(e, context=context).cli_lines():
            click.echo(line, err=True)
        ctx.exit(1)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(__version__, "-v", "--version", help="Show the CLI version and exit.")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Path to the CMS config.yml (defaults to CMS_* environment variables)",
)
@click.option(
    "-e",
    "--env-file",
    type=click.Path(dir_okay=False),
    help="KEY=VALUE file loaded into the environment before CMS_* settings are read",
)
@click.option(
    "-l",
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="WARNING",
    help="Logging level",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str, env_file: str, log_level: str):
    """Operate on the CMS content bucket."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    if env_file:
        load_env_file(env_file)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.pass_context
def unpublished(ctx: click.Context):
    """List every draft with its status."""
    entries = _execute(ctx, "unpublished", lambda backend: backend.unpublished_entries())
    click.echo(_format_raw_json([
        {
            "collection": e.entry.collection,
            "slug": e.entry.slug,
            "status": e.status,
            "title": e.metadata.title,
            "is_modification": e.is_modification,
        }
        for e in entries
    ]))


@cli.command(name="set-status")
@click.argument("collection")
@click.argument("slug")
@click.argument("status")
@click.pass_context
def set_status(ctx: click.Context, collection: str, slug: str, status: str):
    """Move a draft to another workflow status."""
    metadata = _execute(
        ctx,
        "set-status",
        lambda backend: backend.update_unpublished_entry_status(collection, slug, status),
    )
    click.echo(f"{collection}/{slug}: {metadata.status}")


@cli.command()
@click.argument("collection")
@click.argument("slug")
@click.pass_context
def publish(ctx: click.Context, collection: str, slug: str):
    """Publish a draft (safe to repeat)."""
    outcome = _execute(ctx, "publish", lambda backend: backend.publish_unpublished_entry(collection, slug))
    click.echo(f"{collection}/{slug}: {outcome.value}")


@cli.command()
@click.option("--repair", is_flag=True, default=False, help="Delete drafts left behind by interrupted publishes")
@click.pass_context
def reconcile(ctx: click.Context, repair: bool):
    """Find entries left between draft and published."""
    report = _execute(ctx, "reconcile", lambda backend: backend.reconciliation.scan(repair=repair))
    click.echo(_format_raw_json(report.to_dict()))


@cli.command(name="migrate-legacy")
@click.argument("namespace", type=click.Choice([Namespace.PUBLISHED.value, Namespace.UNPUBLISHED.value]))
@click.argument("collection")
@click.argument("folder")
@click.pass_context
def migrate_legacy(ctx: click.Context, namespace: str, collection: str, folder: str):
    """Move path-keyed objects under FOLDER to the collection/slug layout."""
    moved = _execute(
        ctx,
        "migrate-legacy",
        lambda backend: backend.repository.migrate_legacy(Namespace(namespace), collection, folder),
    )
    for old_key, new_key in moved:
        click.echo(f"{old_key} -> {new_key}")
    click.echo(f"Migrated {len(moved)} object(s)")


def main():
    cli()


if __name__ == "__main__":
    main()
