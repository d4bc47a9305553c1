from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from bemyguide.errors import UpstreamError
from bemyguide.recommendations.models import Category
from bemyguide.recommendations.normalizer import (
    ParsedPayload,
    TextPayload,
    UnrecognizedPayload,
    coerce_suggestion,
    maps_link,
    normalize_response,
    resolve_payload,
)


def _completion(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


# ── Envelope resolution ──────────────────────────────────────────────────


def test_resolve_plain_string():
    assert resolve_payload('{"suggestions": []}') == TextPayload('{"suggestions": []}')


def test_resolve_pre_parsed_suggestions():
    raw = {"suggestions": []}
    assert resolve_payload(raw) == ParsedPayload(raw)


def test_resolve_response_key_string_and_object():
    assert resolve_payload({"response": "{}"}) == TextPayload("{}")
    assert resolve_payload({"response": {"suggestions": []}}) == ParsedPayload({"suggestions": []})


def test_resolve_choices_dict():
    raw = {"choices": [{"message": {"content": '{"suggestions": []}'}}]}
    assert resolve_payload(raw) == TextPayload('{"suggestions": []}')


def test_resolve_sdk_completion():
    assert resolve_payload(_completion("{}")) == TextPayload("{}")


@pytest.mark.parametrize("raw", [None, 42, {"foo": "bar"}, {"choices": []}, _completion(None)])
def test_resolve_unrecognized(raw):
    assert isinstance(resolve_payload(raw), UnrecognizedPayload)


# ── Coercion ─────────────────────────────────────────────────────────────


def test_coerce_fills_defaults():
    place = coerce_suggestion({"name": "X"})
    assert place.name == "X"
    assert place.description == ""
    assert place.category is Category.other
    assert place.distance_km is None
    assert place.google_maps_url == maps_link("X")
    assert place.google_maps_url


def test_coerce_keeps_valid_fields():
    place = coerce_suggestion({
        "name": "Central Park",
        "description": "Big park.",
        "category": "Park",
        "distance_km": 1.5,
    })
    assert place.category is Category.park
    assert place.distance_km == 1.5
    assert place.description == "Big park."


def test_coerce_category_case_insensitive():
    assert coerce_suggestion({"category": " museum "}).category is Category.museum


@pytest.mark.parametrize("category", ["Bar", "", None, 3])
def test_coerce_unknown_category(category):
    assert coerce_suggestion({"category": category}).category is Category.other


@pytest.mark.parametrize("distance", ["1.2", None, True, float("nan"), [1]])
def test_coerce_bad_distance_is_absent(distance):
    assert coerce_suggestion({"distance_km": distance}).distance_km is None


def test_coerce_zero_distance_is_kept():
    assert coerce_suggestion({"distance_km": 0}).distance_km == 0.0


def test_coerce_accepts_camel_case_distance():
    assert coerce_suggestion({"distanceKm": 2}).distance_km == 2.0


def test_coerce_non_string_text_fields():
    place = coerce_suggestion({"name": None, "description": 12})
    assert place.name == ""
    assert place.description == ""
    assert place.google_maps_url.startswith("https://www.google.com/maps/search/")


def test_maps_link_is_url_encoded():
    assert maps_link("Joe's Pizza & Co") == (
        "https://www.google.com/maps/search/?api=1&query=Joe%27s+Pizza+%26+Co"
    )


# ── Full normalization ───────────────────────────────────────────────────


def test_normalize_minimal_suggestion():
    places = normalize_response('{"suggestions":[{"name":"X"}]}')
    assert len(places) == 1
    assert places[0].description == ""
    assert places[0].category is Category.other
    assert places[0].distance_km is None


def test_normalize_sdk_completion():
    content = json.dumps({"suggestions": [{"name": "A", "category": "Landmark"}, {"name": "B"}]})
    places = normalize_response(_completion(content))
    assert [p.name for p in places] == ["A", "B"]


def test_normalize_strips_code_fence():
    places = normalize_response('```json\n{"suggestions": [{"name": "X"}]}\n```')
    assert places[0].name == "X"


def test_normalize_empty_suggestions():
    assert normalize_response({"suggestions": []}) == []


def test_normalize_skips_non_object_items():
    places = normalize_response({"suggestions": ["junk", {"name": "X"}, None]})
    assert [p.name for p in places] == ["X"]


def test_normalize_malformed_json():
    with pytest.raises(UpstreamError):
        normalize_response("not valid json{{{")


@pytest.mark.parametrize("raw", ['{"places": []}', '{"suggestions": "none"}', "[1, 2]", "null"])
def test_normalize_missing_suggestions_array(raw):
    with pytest.raises(UpstreamError):
        normalize_response(raw)


def test_normalize_unrecognized_envelope():
    with pytest.raises(UpstreamError):
        normalize_response(object())


def test_coerce_huge_integer_distance_is_absent():
    place = coerce_suggestion({"name": "X", "distance_km": 10**400})
    assert place.distance_km is None
    assert place.name == "X"


def test_normalize_huge_integer_distance_in_text():
    places = normalize_response('{"suggestions": [{"name": "X", "distance_km": 1' + "0" * 400 + "}]}")
    assert len(places) == 1
    assert places[0].distance_km is None
