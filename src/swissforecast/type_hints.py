"""Type hints used in Swiss Forecast."""

from typing import Literal, Optional, Set

# Chess color string constants (for runtime use)
WHITE = "White"
BLACK = "Black"

# Basically, white or black
Colour = Literal["White", "Black"]

# Start numbers are the stable FIDE pairing numbers
StartNo = int
# Explicit eligible pool of start numbers, None means everyone
Pool = Optional[Set[StartNo]]

#  LocalWords:  StartNo
