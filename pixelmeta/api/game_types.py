"""Game metadata data structures shared by all scrapers."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Scalar fields in persisted order: (attribute, JSON key)
SCALAR_FIELDS = (
    ('description', 'description'),
    ('release_date', 'releaseDate'),
    ('genre', 'genre'),
    ('developer', 'developer'),
    ('publisher', 'publisher'),
    ('players', 'players'),
    ('rating', 'rating'),
)


@dataclass
class ScrapedMedia:
    """A raw media descriptor as returned by a provider, before classification."""
    type: str                       # Provider-native tag (e.g., 'box-2D', 'wheel-hd')
    url: str
    format: str = ""


@dataclass
class ScrapedGame:
    """
    Provider-agnostic intermediate result of a search.

    Carries the scalar metadata plus a flat list of unclassified media.
    """
    id: str
    name: str
    description: Optional[str] = None
    release_date: Optional[str] = None
    genre: Optional[str] = None
    developer: Optional[str] = None
    publisher: Optional[str] = None
    players: Optional[str] = None
    rating: Optional[str] = None
    media: List[ScrapedMedia] = field(default_factory=list)


@dataclass
class GameMetadata:
    """
    Normalized metadata persisted for one ROM.

    ``images`` maps a media category (cover, screenshot, title, wheel) to
    a local path; ``videos`` maps a video subtype (normalized) likewise.
    """
    id: str
    name: str
    description: Optional[str] = None
    release_date: Optional[str] = None
    genre: Optional[str] = None
    developer: Optional[str] = None
    publisher: Optional[str] = None
    players: Optional[str] = None
    rating: Optional[str] = None
    images: Dict[str, str] = field(default_factory=dict)
    videos: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_scraped(cls, game: ScrapedGame) -> 'GameMetadata':
        """Build an empty-media metadata record from a search result."""
        return cls(
            id=game.id,
            name=game.name,
            description=game.description,
            release_date=game.release_date,
            genre=game.genre,
            developer=game.developer,
            publisher=game.publisher,
            players=game.players,
            rating=game.rating,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the JSON document layout.

        Unknown optional fields are omitted, ``videos`` only appears when
        at least one video was stored.
        """
        data: Dict[str, Any] = {'id': self.id, 'name': self.name}
        for attr, key in SCALAR_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        data['images'] = dict(self.images)
        if self.videos:
            data['videos'] = dict(self.videos)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameMetadata':
        """
        Build from a JSON document.

        Raises:
            ValueError: If the document is not an object or lacks a name
        """
        if not isinstance(data, dict):
            raise ValueError(f"Metadata document must be an object, got {type(data).__name__}")
        if not isinstance(data.get('name'), str):
            raise ValueError("Metadata document has no name")

        kwargs: Dict[str, Any] = {
            'id': str(data.get('id', '')),
            'name': data['name'],
        }
        for attr, key in SCALAR_FIELDS:
            value = data.get(key)
            if value is not None:
                kwargs[attr] = str(value)

        images = data.get('images') or {}
        videos = data.get('videos') or {}
        kwargs['images'] = {str(k): str(v) for k, v in images.items()} if isinstance(images, dict) else {}
        kwargs['videos'] = {str(k): str(v) for k, v in videos.items()} if isinstance(videos, dict) else {}

        return cls(**kwargs)
