"""
Parallel Mod Parsing

Parsing touches no shared state, so independent mods are parsed on a thread
pool. Allocation afterwards is single-threaded.

Usage:
    from dommerger.parser.pool import parse_mods

    definitions = parse_mods(sources, max_workers=4)
    definitions["ModA"].definition(EntityType.MONSTER).defined_ids
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, Optional

from dommerger.domain.models import ModDefinition
from dommerger.parser.parser import ModParser
from dommerger.sources import ModSource

logger = logging.getLogger(__name__)


DEFAULT_NUM_WORKERS = min(os.cpu_count() or 2, 4)


def parse_mods(
    sources: Iterable[ModSource],
    max_workers: Optional[int] = None,
) -> Dict[str, ModDefinition]:
    """
    Parse every source, returning definitions keyed by mod name in name order.

    The first ModParseError raised by any worker propagates.
    """
    ordered = sorted(sources, key=lambda s: s.name)
    workers = max_workers or DEFAULT_NUM_WORKERS

    if workers <= 1 or len(ordered) <= 1:
        parser = ModParser()
        results = [parser.parse(source.text, source.name) for source in ordered]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(ModParser().parse, source.text, source.name)
                for source in ordered
            ]
            results = [future.result() for future in futures]

    logger.info("Parsed %d mod(s)", len(results))
    return {definition.mod_name: definition for definition in results}
