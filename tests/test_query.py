import pytest

from app.services.web_search import expand_query, is_handbag_query


@pytest.mark.parametrize("query", [
    "black leather tote",
    "Best CROSSBODY for travel",
    "hobo bag under 3000",
    "waterproof backpack",
    "sling for my phone",
    "Handbag gift ideas",
])
def test_handbag_queries_detected(query):
    assert is_handbag_query(query)


@pytest.mark.parametrize("query", [
    "weather in Paris",
    "bagels near me",
    "totem pole history",
    "slingshot physics",
    "",
])
def test_whole_words_only(query):
    assert not is_handbag_query(query)


def test_expand_handbag_query_contains_query():
    expanded = expand_query("red satchel")
    assert expanded == "red satchel buy online handbag"
    assert "red satchel" in expanded


def test_expand_leaves_generic_query_alone():
    assert expand_query("who won the match yesterday") == "who won the match yesterday"


def test_expand_custom_suffix():
    assert expand_query("tote", suffix=" shop india") == "tote shop india"
