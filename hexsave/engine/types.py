from __future__ import annotations

from enum import Enum, IntEnum


class GamePhase(IntEnum):
    NEW = 0
    READY = 1
    START1A = 5
    START1B = 6
    START2A = 10
    START2B = 11
    START3A = 12
    START3B = 13
    ROLL_OR_CARD = 15
    PLAY1 = 20
    PLACING_ROAD = 30
    PLACING_SETTLEMENT = 31
    PLACING_CITY = 32
    PLACING_ROBBER = 33
    PLACING_PIRATE = 34
    PLACING_SHIP = 35
    PLACING_FREE_ROAD1 = 40
    PLACING_FREE_ROAD2 = 41
    WAITING_FOR_DISCARDS = 50
    WAITING_FOR_ROB_CHOOSE_PLAYER = 51
    WAITING_FOR_DISCOVERY = 52
    WAITING_FOR_MONOPOLY = 53
    SPECIAL_BUILDING = 100
    GAME_OVER = 1000

    @property
    def is_initial_placement(self) -> bool:
        return GamePhase.START1A <= self <= GamePhase.START3B


class SeatLockState(str, Enum):
    UNLOCKED = "UNLOCKED"
    LOCKED = "LOCKED"
    CLEAR_ON_RESET = "CLEAR_ON_RESET"


class ResourceType(str, Enum):
    # Order matches ResourceSet's positional constructor.
    CLAY = "CLAY"
    ORE = "ORE"
    SHEEP = "SHEEP"
    WHEAT = "WHEAT"
    WOOD = "WOOD"


class PieceType(str, Enum):
    ROAD = "ROAD"
    SETTLEMENT = "SETTLEMENT"
    CITY = "CITY"
    SHIP = "SHIP"


class DevCardType(str, Enum):
    KNIGHT = "KNIGHT"
    ROAD_BUILDING = "ROAD_BUILDING"
    DISCOVERY = "DISCOVERY"
    MONOPOLY = "MONOPOLY"
    VP = "VP"


class Scenario(str, Enum):
    SC_NSHO = "SC_NSHO"
    SC_4ISL = "SC_4ISL"
    SC_FOG = "SC_FOG"
    SC_TTD = "SC_TTD"
    SC_CLVI = "SC_CLVI"
    SC_PIRI = "SC_PIRI"
    SC_FTRI = "SC_FTRI"
    SC_WOND = "SC_WOND"
