from enum import Enum, auto

class Phase(Enum):
    IDLE = auto()
    AWAITING_CREDENTIALS = auto()
