"""Shared lookups for commands: the store, the current session, error mapping."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import click

from reviewkit_core.errors import PartialWriteError, ReviewError
from reviewkit_core.models import Session
from reviewkit_core.session import locate_session
from reviewkit_store.session_dir import SessionDirStore


def get_store(ctx: click.Context) -> SessionDirStore:
    store = ctx.obj.get("store") if ctx.obj else None
    if store is None:
        raise click.UsageError("No session store configured.")
    return store


def current_session(store: SessionDirStore, explicit: str | None = None) -> Session:
    return locate_session(store.registry.path, explicit=explicit)


@contextmanager
def review_errors() -> Iterator[None]:
    """Turn ReviewError into a ClickException so click prints it and exits 1."""
    try:
        yield
    except PartialWriteError as e:
        hint = ""
        if e.report_written and not e.index_written:
            hint = f"\nRetry the index update with: reviewkit link {e.report_path}"
        raise click.ClickException(f"Partial write: {e}{hint}") from e
    except ReviewError as e:
        raise click.ClickException(str(e)) from e
