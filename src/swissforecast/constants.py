# Swiss Forecast
# Copyright (C) 2025  Swiss Forecast developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

from swissforecast.type_hints import BLACK, WHITE

# --- Constants ---
# Game outcome scores
WIN_SCORE = 1.0
DRAW_SCORE = 0.5
LOSS_SCORE = 0.0

# Bye scores
FULL_POINT_BYE_SCORE = 1.0
HALF_POINT_BYE_SCORE = 0.5

# Start number reserved for "no opponent" in round histories
BYE_OPPONENT = 0

# Textual result codes used by public result pages
RESULT_WHITE_WIN = "1-0"
RESULT_BLACK_WIN = "0-1"
RESULT_DRAW = "½-½"
RESULT_WHITE_FORFEIT_WIN = "F1-0"  # White wins by forfeit (black didn't show)
RESULT_BLACK_FORFEIT_WIN = "F0-1"  # Black wins by forfeit (white didn't show)
FORFEIT_RESULTS = (RESULT_WHITE_FORFEIT_WIN, RESULT_BLACK_FORFEIT_WIN)

# Per-player result tokens accepted on input
RESULT_TOKENS = {
    "1": WIN_SCORE,
    "½": DRAW_SCORE,
    "=": DRAW_SCORE,
    "0.5": DRAW_SCORE,
    "0": LOSS_SCORE,
}

# Colour tokens accepted on input ("-" marks a forfeit)
COLOUR_TOKENS = {
    "W": WHITE,
    "w": WHITE,
    WHITE: WHITE,
    "B": BLACK,
    "b": BLACK,
    BLACK: BLACK,
}

# Colour preference strengths
PREFERENCE_ABSOLUTE = "absolute"
PREFERENCE_STRONG = "strong"
PREFERENCE_MILD = "mild"

# Weighted so that a higher tier always dominates arithmetically
DEFAULT_PREFERENCE_WEIGHTS = {
    PREFERENCE_ABSOLUTE: 100,
    PREFERENCE_STRONG: 10,
    PREFERENCE_MILD: 1,
}

# A single repeat pairing outweighs any amount of colour cost
REPEAT_PAIRING_PENALTY = 10000

# Bracket search limits
EXHAUSTIVE_SEARCH_LIMIT = 8  # max half size for full permutation search
MAX_PERMUTATIONS = 40320  # search nodes per exhaustive bracket search
MAX_COMBINATIONS = 200
LOCAL_SEARCH_PASS_FACTOR = 3

# Steps the repeat-free repair of leftovers may take before giving up
REPAIR_NODE_LIMIT = 100000

# Heterogeneous bracket limits
HETEROGENEOUS_MAX_DOWNFLOATERS = 3
HETEROGENEOUS_MAX_NATIVES = 8
HETEROGENEOUS_NATIVE_WINDOW = 6

# Downfloater selection
DOWNFLOATER_WINDOW = 6
CURRENT_BRACKET_WEIGHT = 100
NEXT_BRACKET_COLOUR_WEIGHT = 10
NO_FIT_PENALTY = 100

# External engine (JaVaFo)
DEFAULT_JAVA_PATH = "java"
TRF_NAME_WIDTH = 33
TRF_FEDERATION_CODE = "ENG"
TRF_TOURNAMENT_TYPE = "Individual: Swiss-System"

# Forecast modes
MODE_PREDICTIONS = "predictions"
MODE_COMPLETED = "completed"
