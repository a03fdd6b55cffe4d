"""Back-testing of predictions against published rounds."""

from swissforecast.comparison.metrics import RoundComparison, backtest, compare_round

__all__ = ["RoundComparison", "backtest", "compare_round"]
