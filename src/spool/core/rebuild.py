"""Regenerate the derived caches from the event logs."""

import logging

from spool.core.index import build_index, write_index
from spool.core.state import materialize, write_state
from spool.store.context import SpoolContext
from spool.store.models import Index, State

logger = logging.getLogger(__name__)


def rebuild(ctx: SpoolContext) -> tuple[Index, State]:
    """Rebuild .index.json and .state.json. Returns what was written."""
    index = build_index(ctx)
    write_index(ctx, index)

    state = materialize(ctx)
    write_state(ctx, state)

    logger.info(
        "Rebuilt caches: %d indexed, %d materialized", len(index.tasks), len(state.tasks)
    )
    return index, state
