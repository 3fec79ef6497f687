"""Aggregation of per-module outcomes into one report."""

from typing import Iterable, Mapping, Tuple, Union

from .models import AggregatedReport, RunOutcome


def aggregate(results: Union[Mapping[str, RunOutcome], Iterable[Tuple[str, RunOutcome]]]) -> AggregatedReport:
    """
    Collect module outcomes into an AggregatedReport.

    Iteration order of the input (the order modules were invoked) is kept;
    names are never re-sorted.

    Args:
        results: Mapping or (name, outcome) pairs

    Returns:
        AggregatedReport
    """
    items = results.items() if isinstance(results, Mapping) else results
    return AggregatedReport(per_module=dict(items))
