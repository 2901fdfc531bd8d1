"""Utility functions for bookkeeper."""

from bookkeeper.utils.date_parser import parse_date, get_date_range
from bookkeeper.utils.amount_parser import parse_amount, format_amount
from bookkeeper.utils.account_resolver import resolve_account

__all__ = ["parse_date", "get_date_range", "parse_amount", "format_amount", "resolve_account"]
