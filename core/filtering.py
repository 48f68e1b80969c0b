"""Client-side insight search."""

from __future__ import annotations

from collections.abc import Sequence

from core.models import Insight


def matches(insight: Insight, term: str) -> bool:
    """True if *term* occurs, case-insensitively, in the title or description."""
    needle = term.casefold()
    return needle in insight.title.casefold() or needle in insight.description.casefold()


def filter_insights(insights: Sequence[Insight], term: str) -> Sequence[Insight]:
    """Return the insights matching *term*, in their original order.

    An empty term returns *insights* itself. The term is not trimmed, so
    a lone space only matches insights whose text contains a space.

    Examples:
        >>> [i.title for i in filter_insights(insights, "rates")]
        ['Interest Rates Outlook']
    """
    if not term:
        return insights
    return [insight for insight in insights if matches(insight, term)]
