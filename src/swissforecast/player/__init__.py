from swissforecast.player.base_player import Player, parse_colour, parse_result

__all__ = [
    "Player",
    "parse_colour",
    "parse_result",
]
