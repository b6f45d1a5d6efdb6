"""Predicate and ordering composition."""

from .predicates import (
    COLUMN_SEARCH_CHAIN,
    GLOBAL_SEARCH_CHAIN,
    PredicateComposer,
    PredicateProvider,
    default_test,
    factory_provider,
    resolve_test,
    static_provider,
)
from .ordering import OrderComposer

__all__ = [
    "COLUMN_SEARCH_CHAIN",
    "GLOBAL_SEARCH_CHAIN",
    "OrderComposer",
    "PredicateComposer",
    "PredicateProvider",
    "default_test",
    "factory_provider",
    "resolve_test",
    "static_provider",
]
