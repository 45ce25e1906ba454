from __future__ import annotations

from coursetutor.rag import ExpandedQuery, QueryExpander, extract_keywords


def test_extract_keywords_drops_stopwords_and_short_words():
    assert extract_keywords("How do I use a FOR loop to iterate?") == ["use", "loop", "iterate"]


def test_extract_keywords_dedupes_in_first_seen_order():
    assert extract_keywords("loop Loop LOOPS loop") == ["loop", "loops"]


def test_extract_keywords_splits_on_punctuation():
    assert extract_keywords("matrix-multiplication, please!") == [
        "matrix",
        "multiplication",
        "please",
    ]


def test_extract_keywords_empty_input():
    assert extract_keywords("") == []
    assert extract_keywords("what is it?") == []


def test_expand_adds_synonyms_with_no_duplicates():
    query = QueryExpander().expand("explain loops")

    assert query.primary == ("explain", "loops")
    assert query.expanded == ("for", "while", "iteration", "repeat", "control flow")


def test_expanded_terms_exclude_primary_keywords():
    query = QueryExpander().expand("loop iteration")

    assert query.primary == ("loop", "iteration")
    assert "iteration" not in query.expanded
    assert query.expanded == ("for", "while", "repeat", "control flow")


def test_custom_synonym_table_is_lowercased():
    expander = QueryExpander(synonyms={"Struct": ["Record", "FIELDS"]})

    query = expander.expand("struct layout")

    assert query.expanded == ("record", "fields")


def test_empty_query_is_falsy():
    assert not ExpandedQuery(primary=())
    assert QueryExpander().expand("the and a") == ExpandedQuery(primary=("and",))
    assert ExpandedQuery(primary=(), expanded=("x",))
