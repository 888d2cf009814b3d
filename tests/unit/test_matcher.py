"""Tests for the matcher module."""

import pickle

import pytest

from cc_grep.errors import InvalidQuery
from cc_grep.matcher import Matcher
from cc_grep.models import CombineMode, MatchMode


def test_literal_match_is_case_insensitive():
    matcher = Matcher(["Deploy"])
    assert matcher.match("how do I DEPLOY this") == ("Deploy",)
    assert matcher.match("nothing relevant") is None


def test_or_reports_matched_subset_in_query_order():
    matcher = Matcher(["alpha", "beta", "gamma"])
    assert matcher.match("gamma then alpha") == ("alpha", "gamma")


def test_and_requires_every_term():
    matcher = Matcher(["auth", "token"], combine=CombineMode.AND)
    assert matcher.match("refresh the auth token") == ("auth", "token")
    assert matcher.match("auth only") is None


def test_regex_match():
    matcher = Matcher([r"retr(y|ied)", r"\d{3}"], mode=MatchMode.REGEX)
    assert matcher.match("We RETRIED twice") == (r"retr(y|ied)",)
    assert matcher.match("status 503 after retry") == (r"retr(y|ied)", r"\d{3}")


def test_regex_is_not_literal():
    """Test that regex metacharacters are not matched literally in literal mode."""
    assert Matcher(["a.c"]).match("abc") is None
    assert Matcher(["a.c"], mode=MatchMode.REGEX).match("abc") == ("a.c",)


def test_invalid_regex_raises():
    with pytest.raises(InvalidQuery, match="Invalid regex"):
        Matcher(["[unclosed"], mode=MatchMode.REGEX)


@pytest.mark.parametrize("terms", [[], [""], ["ok", "   "]])
def test_empty_terms_raise(terms):
    with pytest.raises(InvalidQuery):
        Matcher(terms)


def test_everything_matches_with_no_terms():
    matcher = Matcher.everything()
    assert matcher.match("") == ()
    assert matcher.match("anything") == ()


def test_matcher_pickles():
    """Test that compiled matchers survive a round trip to a worker process."""
    matcher = pickle.loads(pickle.dumps(Matcher(["fo+"], mode=MatchMode.REGEX)))
    assert matcher.match("FOOO") == ("fo+",)


def test_match_all_ignores_terms_and_pickles():
    matcher = pickle.loads(pickle.dumps(Matcher(["ignored"], match_all=True)))
    assert matcher.terms == []
    assert matcher.match("unrelated text") == ()
    assert repr(Matcher.everything()) == "Matcher(<everything>)"
