"""ScreenScraper API response parsing and validation."""

import html
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from pixelmeta.api.error_handler import excerpt
from pixelmeta.api.game_types import ScrapedGame, ScrapedMedia

# Region/language preference orders
NAME_REGIONS = ('ss', 'wor', 'eu', 'us', 'jp')
DATE_REGIONS = ('wor', 'eu', 'us', 'jp')
TEXT_LANGUAGES = ('fr', 'en')

# Candidate id fields seen across jeuRecherche.php response shapes
ID_FIELDS = ('id', 'jeuid', 'idJeu')


@dataclass
class ParseFailure:
    """Reason a response body could not be turned into a JSON payload."""
    reason: str
    body_excerpt: str = ""

    def __str__(self) -> str:
        if self.body_excerpt:
            return f"{self.reason} Body: {self.body_excerpt}"
        return self.reason


def parse_envelope(content_type: str, body: str) -> Union[Dict[str, Any], ParseFailure]:
    """
    Validate and parse a ScreenScraper response body.

    ScreenScraper reports some failures as plain text or HTML with a 200
    status, so the Content-Type is checked before parsing.

    Args:
        content_type: Content-Type header value
        body: Response body text

    Returns:
        Parsed JSON object, or ParseFailure describing why it was rejected
    """
    ct = (content_type or '').lower()
    if 'application/json' not in ct:
        return ParseFailure(f"Non-JSON response ({ct or 'no content-type'})", excerpt(body))

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        return ParseFailure(f"JSON parse error: {e}", excerpt(body))

    if not isinstance(data, dict):
        return ParseFailure(f"Unexpected JSON root: {type(data).__name__}", excerpt(body))

    return data


def extract_error_message(data: Dict[str, Any]) -> Optional[str]:
    """
    Extract the API error message from the response header.

    Args:
        data: Parsed response envelope

    Returns:
        Non-empty ``header.erreur`` string, or None
    """
    header = data.get('header')
    if not isinstance(header, dict):
        return None
    error = header.get('erreur')
    if isinstance(error, str) and error:
        return error
    return None


def decode_html_entities(text: str) -> str:
    """
    Decode HTML entities in API response text.

    ScreenScraper returns text with HTML entities that must be decoded.
    """
    if not text:
        return text
    return html.unescape(text)


def get_string(obj: Dict[str, Any], key: str) -> Optional[str]:
    """Read a string or number field as a string."""
    value = obj.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


def get_nested_text(obj: Dict[str, Any], key: str, sub_key: str = 'text') -> Optional[str]:
    """Read a field that is either a plain string or ``{sub_key: string}``."""
    value = obj.get(key)
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        inner = value.get(sub_key)
        if isinstance(inner, str):
            return inner
    return None


def _dict_entries(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, dict)]


def get_jeu(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Find the game object in a jeuInfos.php envelope.

    ``response`` may be an object or a list of objects, and ``jeu`` may be
    an object or a list; the first game object found is returned.
    """
    response = data.get('response')
    if isinstance(response, list):
        lookups = response
    elif isinstance(response, dict):
        lookups = [response]
    else:
        return None

    for entry in lookups:
        if not isinstance(entry, dict):
            continue
        jeu = entry.get('jeu')
        if isinstance(jeu, list):
            games = _dict_entries(jeu)
            if games:
                return games[0]
        if isinstance(jeu, dict):
            return jeu

    return None


def pick_first_search_result(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Find the first candidate in a jeuRecherche.php envelope.

    Accepted shapes: ``response`` as a list, ``response.jeux`` as a list,
    ``response.jeu`` as a list, ``response.jeux.jeu`` as a list, or
    ``response.jeu`` as a single object.
    """
    response = data.get('response')

    if isinstance(response, list):
        return response[0] if response and isinstance(response[0], dict) else None
    if not isinstance(response, dict):
        return None

    jeux = response.get('jeux')
    jeu = response.get('jeu')

    for candidates in (jeux, jeu):
        if isinstance(candidates, list):
            return candidates[0] if candidates and isinstance(candidates[0], dict) else None

    if isinstance(jeux, dict):
        inner = jeux.get('jeu')
        if isinstance(inner, list):
            return inner[0] if inner and isinstance(inner[0], dict) else None

    if isinstance(jeu, dict):
        return jeu

    return None


def extract_game_id(candidate: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Get the game id from a search candidate.

    Returns:
        First of ``id``, ``jeuid``, ``idJeu`` that is a string or number
    """
    if not candidate:
        return None
    for key in ID_FIELDS:
        value = get_string(candidate, key)
        if value is not None:
            return value
    return None


def pick_name(jeu: Dict[str, Any], regions: Sequence[str] = NAME_REGIONS) -> Optional[str]:
    """
    Pick the display name from region-tagged variants.

    Falls back to the first named entry, then to a flat ``nom`` field.
    """
    region_texts: Dict[str, str] = {}
    fallback = None

    for entry in _dict_entries(jeu.get('noms')):
        text = entry.get('text')
        if not isinstance(text, str):
            continue
        if fallback is None:
            fallback = text
        region = entry.get('region')
        if isinstance(region, str):
            region_texts.setdefault(region.lower(), text)

    for region in regions:
        if region_texts.get(region):
            return decode_html_entities(region_texts[region])
    if fallback:
        return decode_html_entities(fallback)

    nom = get_string(jeu, 'nom')
    return decode_html_entities(nom) if nom else nom


def _pick_tagged_text(
    entries: List[Dict[str, Any]],
    tag_key: str,
    preferred: Sequence[str]
) -> Optional[str]:
    for tag in preferred:
        for entry in entries:
            text = entry.get('text')
            if entry.get(tag_key) == tag and isinstance(text, str):
                return text
    for entry in entries:
        text = entry.get('text')
        if isinstance(text, str):
            return text
    return None


def pick_synopsis(jeu: Dict[str, Any], languages: Sequence[str] = TEXT_LANGUAGES) -> Optional[str]:
    """Pick the synopsis by language preference, else the first one."""
    text = _pick_tagged_text(_dict_entries(jeu.get('synopsis')), 'langue', languages)
    return decode_html_entities(text) if text else None


def pick_release_date(jeu: Dict[str, Any], regions: Sequence[str] = DATE_REGIONS) -> Optional[str]:
    """Pick the release date by region preference, else the first one."""
    return _pick_tagged_text(_dict_entries(jeu.get('dates')), 'region', regions)


def pick_genres(jeu: Dict[str, Any], languages: Sequence[str] = TEXT_LANGUAGES) -> Optional[str]:
    """
    Build a genre string from the genre list.

    Primary genres (``principale`` = 1) are used when present, otherwise
    all genres. Each genre contributes one name chosen by language
    preference; duplicates are dropped and the rest joined with " / ".
    """
    entries = _dict_entries(jeu.get('genres'))
    if not entries:
        return None

    primary = [e for e in entries if e.get('principale') in ('1', 1)]
    collected: List[str] = []

    for entry in primary or entries:
        name = _pick_tagged_text(_dict_entries(entry.get('noms')), 'langue', languages)
        if name is not None:
            name = decode_html_entities(name)
            if name not in collected:
                collected.append(name)

    return " / ".join(collected) if collected else None


def parse_media(jeu: Dict[str, Any]) -> List[ScrapedMedia]:
    """Map ``medias`` entries to ScrapedMedia, dropping entries without a URL."""
    media = []
    for entry in _dict_entries(jeu.get('medias')):
        url = entry.get('url')
        if not isinstance(url, str):
            continue
        media_type = entry.get('type')
        media_format = entry.get('format')
        media.append(ScrapedMedia(
            type=media_type if isinstance(media_type, str) else '',
            url=url,
            format=media_format if isinstance(media_format, str) else '',
        ))
    return media


def _text_or_none(value: Optional[str]) -> Optional[str]:
    return decode_html_entities(value) if value else None


def parse_game(jeu: Dict[str, Any]) -> ScrapedGame:
    """
    Convert a ScreenScraper ``jeu`` object into a ScrapedGame.

    Args:
        jeu: Game object from jeuInfos.php

    Returns:
        ScrapedGame with unclassified media
    """
    return ScrapedGame(
        id=get_string(jeu, 'id') or get_string(jeu, 'jeuid') or '',
        name=pick_name(jeu) or '',
        description=pick_synopsis(jeu),
        release_date=pick_release_date(jeu),
        genre=pick_genres(jeu),
        developer=_text_or_none(get_nested_text(jeu, 'developpeur')),
        publisher=_text_or_none(get_nested_text(jeu, 'editeur')),
        players=get_nested_text(jeu, 'joueurs') or None,
        rating=get_nested_text(jeu, 'note') or None,
        media=parse_media(jeu),
    )
