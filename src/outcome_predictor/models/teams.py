"""Team reference data.

Teams are immutable identities loaded once at import time. The ``id`` is the
ESPN team id, which is also what the ESPN schedule endpoint expects.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class Conference(Enum):
    """NFL conference affiliation."""
    AFC = "AFC"
    NFC = "NFC"


class Division(Enum):
    """Division within a conference."""
    NORTH = "North"
    SOUTH = "South"
    EAST = "East"
    WEST = "West"


@dataclass(frozen=True)
class Team:
    """An NFL franchise."""
    id: str
    abbreviation: str
    name: str
    conference: Conference
    division: Division

    def is_division_rival(self, other: "Team") -> bool:
        return (
            self.abbreviation != other.abbreviation
            and self.conference == other.conference
            and self.division == other.division
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.abbreviation})"


_AFC, _NFC = Conference.AFC, Conference.NFC
_N, _S, _E, _W = Division.NORTH, Division.SOUTH, Division.EAST, Division.WEST

NFL_TEAMS: List[Team] = [
    # NFC East
    Team("6", "DAL", "Dallas Cowboys", _NFC, _E),
    Team("21", "PHI", "Philadelphia Eagles", _NFC, _E),
    Team("19", "NYG", "New York Giants", _NFC, _E),
    Team("28", "WAS", "Washington Commanders", _NFC, _E),
    # NFC North
    Team("8", "DET", "Detroit Lions", _NFC, _N),
    Team("9", "GB", "Green Bay Packers", _NFC, _N),
    Team("16", "MIN", "Minnesota Vikings", _NFC, _N),
    Team("3", "CHI", "Chicago Bears", _NFC, _N),
    # NFC South
    Team("27", "TB", "Tampa Bay Buccaneers", _NFC, _S),
    Team("1", "ATL", "Atlanta Falcons", _NFC, _S),
    Team("18", "NO", "New Orleans Saints", _NFC, _S),
    Team("29", "CAR", "Carolina Panthers", _NFC, _S),
    # NFC West
    Team("25", "SF", "San Francisco 49ers", _NFC, _W),
    Team("26", "SEA", "Seattle Seahawks", _NFC, _W),
    Team("14", "LAR", "Los Angeles Rams", _NFC, _W),
    Team("22", "ARI", "Arizona Cardinals", _NFC, _W),
    # AFC East
    Team("2", "BUF", "Buffalo Bills", _AFC, _E),
    Team("15", "MIA", "Miami Dolphins", _AFC, _E),
    Team("20", "NYJ", "New York Jets", _AFC, _E),
    Team("17", "NE", "New England Patriots", _AFC, _E),
    # AFC North
    Team("33", "BAL", "Baltimore Ravens", _AFC, _N),
    Team("23", "PIT", "Pittsburgh Steelers", _AFC, _N),
    Team("4", "CIN", "Cincinnati Bengals", _AFC, _N),
    Team("5", "CLE", "Cleveland Browns", _AFC, _N),
    # AFC South
    Team("34", "HOU", "Houston Texans", _AFC, _S),
    Team("11", "IND", "Indianapolis Colts", _AFC, _S),
    Team("30", "JAX", "Jacksonville Jaguars", _AFC, _S),
    Team("10", "TEN", "Tennessee Titans", _AFC, _S),
    # AFC West
    Team("12", "KC", "Kansas City Chiefs", _AFC, _W),
    Team("24", "LAC", "Los Angeles Chargers", _AFC, _W),
    Team("13", "LV", "Las Vegas Raiders", _AFC, _W),
    Team("7", "DEN", "Denver Broncos", _AFC, _W),
]

_BY_ABBREVIATION: Dict[str, Team] = {team.abbreviation: team for team in NFL_TEAMS}
_BY_NAME: Dict[str, Team] = {team.name.lower(): team for team in NFL_TEAMS}

# Provider spellings that differ from ours
ABBREVIATION_ALIASES = {
    "WSH": "WAS",
    "LA": "LAR",
    "JAC": "JAX",
    "OAK": "LV",
    "SD": "LAC",
    "STL": "LAR",
}


def normalize_abbreviation(abbreviation: str) -> str:
    abbr = abbreviation.strip().upper()
    return ABBREVIATION_ALIASES.get(abbr, abbr)


def team_by_abbreviation(abbreviation: str) -> Optional[Team]:
    """Lookup team by abbreviation, accepting provider aliases."""
    return _BY_ABBREVIATION.get(normalize_abbreviation(abbreviation))


def team_by_name(name: str) -> Optional[Team]:
    """Lookup team by full name (case-insensitive)."""
    return _BY_NAME.get(name.strip().lower())


def teams_in(conference: Conference, division: Optional[Division] = None) -> List[Team]:
    """All teams in a conference, optionally narrowed to a division."""
    return [
        team for team in NFL_TEAMS
        if team.conference == conference and (division is None or team.division == division)
    ]
