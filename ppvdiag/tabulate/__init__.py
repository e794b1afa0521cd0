"""Report-ready tables of stratified results."""

from ppvdiag.tabulate._format import (
    NA,
    agreement_table,
    format_estimate,
    format_number,
    roc_table,
)

__all__ = [
    "NA",
    "format_number",
    "format_estimate",
    "roc_table",
    "agreement_table",
]
