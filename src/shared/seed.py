"""Random source construction for reproducible runs."""

from __future__ import annotations

import logging
import random

log = logging.getLogger(__name__)


def make_rng(seed: int | None = None) -> random.Random:
    """Return a dedicated ``random.Random``, seeded when *seed* is given.

    The global ``random`` module state is left untouched.
    """
    if seed is None:
        return random.Random()
    log.info("Random seed initialised: %d", seed)
    return random.Random(seed)
