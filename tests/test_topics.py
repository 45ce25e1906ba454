from __future__ import annotations

import pytest

from coursetutor.skills.topics import (
    Topic,
    TopicClassifier,
    all_topics,
    format_topic_name,
    parse_topic_table,
)


@pytest.fixture
def classifier() -> TopicClassifier:
    return TopicClassifier()


def test_loop_question(classifier: TopicClassifier):
    assert classifier.classify("How do I use a for loop to iterate?") is Topic.LOOPS


def test_longer_keywords_weigh_more(classifier: TopicClassifier):
    # "anonymous function" (18) beats "function" (8)
    assert classifier.classify("How to write an anonymous function?") is Topic.ADVANCED


def test_keywords_match_whole_words_only(classifier: TopicClassifier):
    # "for" must not match inside "format"
    assert classifier.classify("format the output") is Topic.FUNCTIONS


def test_no_match_is_general(classifier: TopicClassifier):
    assert classifier.classify("hello there") is Topic.GENERAL
    assert classifier.classify("") is Topic.GENERAL
    assert classifier.classify("   ") is Topic.GENERAL


def test_scores(classifier: TopicClassifier):
    scores = classifier.scores("Plot a FIGURE")

    assert scores == {Topic.PLOTTING: 10}


def test_ties_go_to_first_declared_topic():
    table = ((Topic.LOOPS, ("abc",)), (Topic.FUNCTIONS, ("xyz",)))

    assert TopicClassifier(table).classify("abc xyz") is Topic.LOOPS
    assert TopicClassifier(tuple(reversed(table))).classify("abc xyz") is Topic.FUNCTIONS


def test_parse_topic_table_keeps_order():
    table = parse_topic_table({"strings": ["Regexp"], "loops": ["parfor"]})

    assert table == ((Topic.STRINGS, ("regexp",)), (Topic.LOOPS, ("parfor",)))
    assert TopicClassifier(table).classify("use regexp in a parfor") is Topic.STRINGS


def test_parse_topic_table_rejects_general_and_unknown():
    with pytest.raises(ValueError):
        parse_topic_table({"general": ["anything"]})
    with pytest.raises(ValueError):
        parse_topic_table({"not_a_topic": ["x"]})


def test_topic_names():
    assert len(all_topics()) == 14
    assert Topic.GENERAL not in all_topics()
    assert format_topic_name("arrays_matrices") == "Arrays & Matrices"
    assert format_topic_name(Topic.FILE_IO) == "File I/O"
    assert format_topic_name("unknown") == "unknown"
