"""Combinators: all_of, race, all_settled and any_of."""

from cofutures.combinators.operations import all_of, all_settled, any_of, race

__all__ = [
    "all_of",
    "all_settled",
    "any_of",
    "race",
]
