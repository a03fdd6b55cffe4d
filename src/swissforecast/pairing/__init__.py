"""Pairing engine for the FIDE Dutch system."""

from swissforecast.pairing.dutch_swiss import (
    DutchSwissEngine,
    assign_board_numbers,
    predict_pairings,
    select_bye,
)

__all__ = [
    "DutchSwissEngine",
    "assign_board_numbers",
    "predict_pairings",
    "select_bye",
]
