"""
Per-request report pipeline shared by the GA4, GSC and Google Ads endpoints.

Each request runs one primary query and any number of secondary queries:

    primary fails            -> error response (classified DashboardError)
    secondary fails          -> logged, section marked as failed (None)
    all done                 -> source assembler builds the payload

Secondary queries are independent of each other and may run concurrently.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from services.aggregation import MetricSpec, aggregate, aggregate_rows
from services.assembler import round_to
from services.errors import SOURCE_LABELS, classify_upstream_error
from services.grouping import KeyFn, group_rows
from services.trends import compute_trends

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceProfile:
    """Per-source knobs for the shared pipeline."""
    key: str
    label: str
    default_days: int
    money_digits: int = 2
    rate_digits: int = 2
    trend_digits: int = 1
    share_digits: int = 1
    limits: dict = field(default_factory=dict)

    def limit(self, section: str):
        return self.limits.get(section)


@dataclass(frozen=True)
class SectionQuery:
    """A named, blocking call that returns report rows for one payload section."""
    name: str
    fetch: Callable[[], Any]


def summarize(rows, key_fn: KeyFn, spec: MetricSpec) -> dict:
    """Group and aggregate in one step."""
    return aggregate(group_rows(rows or [], key_fn), spec)


def totals(rows, spec: MetricSpec) -> dict:
    """One record over all rows."""
    return aggregate_rows(rows or [], spec)


async def _run(query: SectionQuery):
    return await asyncio.to_thread(query.fetch)


async def collect_sections(
    source: str,
    primary: SectionQuery,
    secondaries: Iterable[SectionQuery] = (),
    parallel: bool = True,
) -> dict:
    """
    Run the primary query, then the secondary queries best-effort.

    Returns {section name: rows}; a failed secondary section maps to None.
    Raises the classified DashboardError when the primary query fails.
    """
    tag = SOURCE_LABELS.get(source, source)
    secondaries = list(secondaries)

    try:
        primary_rows = await _run(primary)
    except Exception as e:
        logger.error("[%s] Primary query %s failed: %s", tag, primary.name, e, exc_info=True)
        raise classify_upstream_error(e, source) from e

    logger.info("[%s] %s: %d rows", tag, primary.name, len(primary_rows or []))
    sections = {primary.name: primary_rows}

    if parallel:
        outcomes = await asyncio.gather(*(_run(q) for q in secondaries), return_exceptions=True)
    else:
        outcomes = []
        for query in secondaries:
            try:
                outcomes.append(await _run(query))
            except Exception as e:
                outcomes.append(e)

    for query, outcome in zip(secondaries, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, Exception):
            logger.warning("[%s] Could not fetch %s: %s", tag, query.name, outcome)
            sections[query.name] = None
        else:
            logger.info("[%s] %s: %d rows", tag, query.name, len(outcome or []))
            sections[query.name] = outcome

    return sections


def overview_trends(current: dict, previous, fields: dict, digits: int) -> dict:
    """
    Rounded trends for an overview block.

    `previous` is None when the prior-window query failed; every trend is
    then 0.
    """
    if previous is None:
        return {out: 0 for out in fields}
    trends = compute_trends(current, previous, fields)
    return {out: round_to(value, digits) for out, value in trends.items()}


async def build_report(profile: SourceProfile, queries: tuple, assemble: Callable, parallel: bool = True):
    """Collect every section for `profile`, then hand them to `assemble`."""
    primary, secondaries = queries
    sections = await collect_sections(profile.key, primary, secondaries, parallel=parallel)
    return assemble(sections)
