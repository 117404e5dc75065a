"""
Shared data models for the BGG collection package.
"""

from dataclasses import dataclass
from typing import Optional, Literal, Dict, Any

from pydantic import BaseModel


@dataclass
class ImportedRecord:
    """One BGG catalog entry, normalized from the XML API."""
    external_id: int
    name: str
    year_published: Optional[int] = None
    min_players: Optional[int] = None
    max_players: Optional[int] = None
    playing_time: Optional[int] = None
    thumbnail_url: Optional[str] = None

    def fields(self) -> Dict[str, Any]:
        """Descriptive fields written to the store on import."""
        return {
            'name': self.name,
            'year_published': self.year_published,
            'min_players': self.min_players,
            'max_players': self.max_players,
            'playing_time': self.playing_time,
            'thumbnail_url': self.thumbnail_url,
        }


@dataclass
class CollectionEntry:
    """A game in the local collection."""
    local_id: int
    name: str
    external_id: Optional[int] = None
    year_published: Optional[int] = None
    min_players: Optional[int] = None
    max_players: Optional[int] = None
    playing_time: Optional[int] = None
    thumbnail_url: Optional[str] = None
    played: bool = False
    tier: Optional[str] = None
    tier_rank: Optional[int] = None
    created_at: Optional[str] = None


@dataclass
class ReconcileResult:
    created: int = 0
    updated: int = 0


@dataclass
class ImportSummary:
    created: int = 0
    updated: int = 0
    batch_count: int = 0


@dataclass
class ImportResult:
    """Result of an import run, as shown to the user."""
    username: str
    success: bool
    created: int = 0
    updated: int = 0
    batch_count: int = 0
    error_message: Optional[str] = None
    processing_time: float = 0.0


class TierUpdate(BaseModel):
    """One placement on the tier board."""
    id: int
    tier: Optional[Literal["S", "A", "B", "C", "D"]] = None
    tier_rank: Optional[int] = None
