# Stadium/models.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fanmunch.core.errors import ModelValidationError

DEFAULT_COLOR = "#3D70FF"

FEATURE_FLAGS = (
    "hasSeats",
    "hasSections",
    "hasFloors",
    "hasRooms",
    "hasShops",
    "hasStands",
    "hasPickupPoints",
    "hasTickets",
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Stadium(BaseModel):
    """
    A venue. Instances are immutable: update() hands back a new Stadium.
    Timestamps are kept as ISO strings, the way the apps store them.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Optional[str] = None
    name: str = ""
    about: str = ""
    location: str = ""
    capacity: int = Field(default=0, ge=0)
    imageUrl: str = ""
    teams: List[str] = Field(default_factory=list)
    color: str = DEFAULT_COLOR
    floors: int = Field(default=0, ge=0)

    # Feature availability
    hasSeats: bool = False
    hasSections: bool = False
    hasFloors: bool = False
    hasRooms: bool = False
    hasShops: bool = False
    hasStands: bool = False
    hasPickupPoints: bool = False
    hasTickets: bool = False

    createdAt: str = Field(default_factory=_now_iso)
    updatedAt: str = Field(default_factory=_now_iso)

    @field_validator("createdAt", "updatedAt", mode="before")
    def _timestamp_to_iso(cls, v: Any) -> Any:
        # Firestore hands back DatetimeWithNanoseconds
        if isinstance(v, datetime):
            return v.isoformat()
        return v

    # ---------------------------
    # Construction / persistence
    # ---------------------------
    @classmethod
    def from_map(cls, data: Dict[str, Any]) -> "Stadium":
        """Validate a raw document. Null fields fall back to their defaults."""
        cleaned = {k: v for k, v in (data or {}).items() if v is not None}
        try:
            return cls.model_validate(cleaned)
        except ValidationError as e:
            raise ModelValidationError.from_pydantic("Stadium", e) from e

    def to_map(self) -> Dict[str, Any]:
        return self.model_dump()

    def update(self, **changes: Any) -> "Stadium":
        """Return a new Stadium with changes merged and updatedAt refreshed."""
        merged = {**self.to_map(), **changes, "updatedAt": _now_iso()}
        return Stadium.from_map(merged)

    # ---------------------------
    # Display helpers
    # ---------------------------
    def formatted_capacity(self) -> str:
        return f"{self.capacity:,}"

    def display_name(self) -> str:
        return f"{self.name} - {self.location}"

    def has_team(self, team_name: str) -> bool:
        needle = (team_name or "").lower()
        return any(needle in team.lower() for team in self.teams)

    def features(self) -> Dict[str, bool]:
        return {flag: getattr(self, flag) for flag in FEATURE_FLAGS}


# ---------------------------
# Static data served when Firestore is unreachable
# ---------------------------
_FALLBACK_DATA = [
    {
        "id": "metlife-stadium",
        "name": "MetLife Stadium",
        "location": "East Rutherford, NJ",
        "about": "Home to the New York Giants and New York Jets",
        "capacity": 82500,
        "teams": ["Giants", "Jets"],
        "color": "#0B2265",
    },
    {
        "id": "madison-square-garden",
        "name": "Madison Square Garden",
        "location": "New York, NY",
        "about": "The World's Most Famous Arena",
        "capacity": 20789,
        "teams": ["Knicks", "Rangers"],
        "color": "#F58426",
    },
    {
        "id": "yankee-stadium",
        "name": "Yankee Stadium",
        "location": "Bronx, NY",
        "about": "Home of the New York Yankees",
        "capacity": 54251,
        "teams": ["Yankees"],
        "color": "#132448",
    },
    {
        "id": "barclays-center",
        "name": "Barclays Center",
        "location": "Brooklyn, NY",
        "about": "Home to the Brooklyn Nets and New York Islanders",
        "capacity": 17732,
        "teams": ["Nets", "Islanders"],
        "color": "#000000",
    },
    {
        "id": "citi-field",
        "name": "Citi Field",
        "location": "Queens, NY",
        "about": "Home of the New York Mets",
        "capacity": 41922,
        "teams": ["Mets"],
        "color": "#002D72",
    },
    {
        "id": "red-bull-arena",
        "name": "Red Bull Arena",
        "location": "Harrison, NJ",
        "about": "Home of the New York Red Bulls",
        "capacity": 25000,
        "teams": ["Red Bulls"],
        "color": "#C4122E",
    },
]


def fallback_stadiums() -> List[Stadium]:
    return [Stadium.from_map(data) for data in _FALLBACK_DATA]
