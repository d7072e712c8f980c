import json

import pytest

from pixelmeta.api.response_parser import (
    ParseFailure,
    extract_error_message,
    extract_game_id,
    get_jeu,
    parse_envelope,
    parse_game,
    pick_first_search_result,
    pick_genres,
    pick_name,
)


@pytest.mark.unit
def test_parse_envelope_rejects_non_json_content_type():
    result = parse_envelope("text/html; charset=utf-8", "<html>Erreur de login</html>")

    assert isinstance(result, ParseFailure)
    assert "Non-JSON" in result.reason
    assert result.body_excerpt.startswith("<html>")


@pytest.mark.unit
def test_parse_envelope_truncates_body_excerpt():
    body = "x" * 1000
    result = parse_envelope("application/json", body)

    assert isinstance(result, ParseFailure)
    assert len(result.body_excerpt) == 300


@pytest.mark.unit
def test_parse_envelope_rejects_non_object_root():
    result = parse_envelope("application/json", "[1, 2]")
    assert isinstance(result, ParseFailure)


@pytest.mark.unit
def test_parse_envelope_returns_payload():
    payload = {"header": {}, "response": {"jeu": {"id": "1"}}}
    assert parse_envelope("application/json;charset=utf-8", json.dumps(payload)) == payload


@pytest.mark.unit
def test_extract_error_message():
    assert extract_error_message({"header": {"erreur": "Login Required"}}) == "Login Required"
    assert extract_error_message({"header": {"erreur": ""}}) is None
    assert extract_error_message({}) is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "response",
    [
        [{"id": "7"}],
        {"jeux": [{"id": "7"}]},
        {"jeu": [{"id": "7"}]},
        {"jeux": {"jeu": [{"id": "7"}]}},
        {"jeu": {"id": "7"}},
    ],
)
def test_pick_first_search_result_accepts_every_shape(response):
    candidate = pick_first_search_result({"response": response})
    assert extract_game_id(candidate) == "7"


@pytest.mark.unit
def test_pick_first_search_result_empty():
    assert pick_first_search_result({"response": {"jeux": []}}) is None
    assert pick_first_search_result({"response": None}) is None


@pytest.mark.unit
def test_extract_game_id_field_order_and_numbers():
    assert extract_game_id({"jeuid": 12}) == "12"
    assert extract_game_id({"idJeu": "5", "jeuid": "6"}) == "6"
    assert extract_game_id({"name": "x"}) is None
    assert extract_game_id(None) is None


@pytest.mark.unit
def test_get_jeu_from_list_response():
    data = {"response": [{"jeu": [{"id": "1"}, {"id": "2"}]}]}
    assert get_jeu(data) == {"id": "1"}


@pytest.mark.unit
def test_pick_name_region_preference_and_entities():
    jeu = {
        "noms": [
            {"region": "jp", "text": "Japanese"},
            {"region": "us", "text": "Tom &amp; Jerry"},
        ]
    }
    assert pick_name(jeu) == "Tom & Jerry"
    assert pick_name({"noms": [], "nom": "Flat"}) == "Flat"


@pytest.mark.unit
def test_pick_genres_prefers_primary_and_deduplicates():
    jeu = {
        "genres": [
            {"principale": "1", "noms": [{"langue": "en", "text": "Action"}, {"langue": "fr", "text": "Action"}]},
            {"principale": 1, "noms": [{"langue": "en", "text": "Platform"}, {"langue": "fr", "text": "Plateforme"}]},
            {"principale": "0", "noms": [{"langue": "fr", "text": "Divers"}]},
            {"principale": "1", "noms": [{"langue": "fr", "text": "Action"}]},
        ]
    }
    assert pick_genres(jeu) == "Action / Plateforme"


@pytest.mark.unit
def test_parse_game_maps_fields_and_media():
    jeu = {
        "id": "99",
        "noms": [{"region": "wor", "text": "Alpha Quest"}],
        "synopsis": [{"langue": "en", "text": "English"}, {"langue": "fr", "text": "Fran&ccedil;ais"}],
        "dates": [{"region": "jp", "text": "1992"}, {"region": "us", "text": "1993-04-01"}],
        "developpeur": {"id": "1", "text": "Dev Co"},
        "editeur": "Pub Co",
        "joueurs": {"text": "1-2"},
        "note": {"text": "16"},
        "medias": [
            {"type": "box-2D", "url": "http://x/box.png", "format": "png"},
            {"type": "ss", "url": None},
        ],
    }

    game = parse_game(jeu)

    assert game.id == "99"
    assert game.name == "Alpha Quest"
    assert game.description == "Français"
    assert game.release_date == "1993-04-01"
    assert game.developer == "Dev Co"
    assert game.publisher == "Pub Co"
    assert game.players == "1-2"
    assert game.rating == "16"
    assert len(game.media) == 1
    assert game.media[0].type == "box-2D"
