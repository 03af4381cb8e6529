"""FLAGCACHE cache CLI: one-shot refreshes of the evaluation cache.

Every command reads settings from the environment, performs a single refresh
from the configured backend, and then works on the resulting snapshot.

- ``flagcache cache export``: write the snapshot as a JSON envelope. The
  output can be served to other processes through the ``json_file``,
  ``json_http`` or ``json_s3`` drivers.
- ``flagcache cache get FLAG``: print one flag, found by ID or key.
- ``flagcache cache check``: report what the snapshot contains.

Data goes to **stdout**; notices and errors to **stderr**.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import click
import click_extra as clickx

from flagcache import config
from flagcache.bootstrap import bootstrap
from flagcache.domain.errors import PreparationError
from flagcache.interfaces.fetcher import ConfigurationError, FetchError

from .helpers import error, sanitize_url, success, warn

if TYPE_CHECKING:
    from flagcache.service_layer.eval_cache import EvalCache

logger = logging.getLogger(__name__)


def _refreshed_cache() -> EvalCache:
    try:
        app = bootstrap()
        logger.debug(
            "One-shot refresh (eval_only_mode=%s, driver=%s)",
            app.settings.eval_only_mode,
            app.settings.db_driver,
        )
        app.eval_cache.refresh()
    except ConfigurationError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e
    except (FetchError, PreparationError) as e:
        raise click.ClickException(str(e)) from e
    return app.eval_cache


@click.group(cls=clickx.ExtraGroup)
def cache() -> None:
    """Load the evaluation cache once and inspect or export it."""


@cache.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write the envelope to this file instead of stdout.",
)
@click.option(
    "--indent",
    type=click.IntRange(min=0),
    default=None,
    help="Pretty-print with this many spaces of indentation.",
)
def export(output: Path | None, indent: int | None) -> None:
    """Export every flag as a JSON envelope."""
    envelope = _refreshed_cache().export_json()
    if output is None:
        stdout = click.get_binary_stream("stdout")
        envelope.write(stdout, indent=indent)
        stdout.write(b"\n")
        stdout.flush()
        return

    # write next to the target and rename, so readers never see a partial file
    tmp = output.with_name(f".{output.name}.tmp")
    try:
        with tmp.open("wb") as fh:
            size = envelope.write(fh, indent=indent)
        tmp.replace(output)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    success(f"Exported {len(envelope.flags)} flags ({size} bytes) to {output}")


@cache.command()
@click.argument("flag")
@click.option(
    "--indent",
    type=click.IntRange(min=0),
    default=2,
    show_default=True,
    help="Indentation of the printed JSON.",
)
def get(flag: str, indent: int) -> None:
    """Print the flag with ID or key FLAG."""
    found = _refreshed_cache().get_by_key_or_id(flag)
    if found is None:
        error(f"Flag {flag!r} not found")
        raise SystemExit(1)
    click.echo(json.dumps(found.to_wire(), indent=indent or None, ensure_ascii=False))


@cache.command()
def check() -> None:
    """Refresh once and report the snapshot's contents."""
    snapshot = _refreshed_cache().snapshot
    settings = config.load_settings()
    flags = snapshot.flags()

    mode = "eval-only" if settings.eval_only_mode else "database"
    click.echo(f"Source   : {mode} ({settings.db_driver})")
    click.echo(f"Location : {sanitize_url(settings.db_connection_str)}")
    click.echo(f"Flags    : {len(flags)}")
    click.echo(f"By ID    : {len(snapshot.by_id)}")
    click.echo(f"By key   : {len(snapshot.by_key)}")
    click.echo(f"Enabled  : {sum(1 for f in flags if f.enabled)}")
    click.echo(f"Segments : {sum(len(f.segments) for f in flags)}")
    if snapshot.is_empty:
        warn("The source holds no flag reachable by ID or key")
    success("Evaluation cache loaded")
