import pytest

from appwyrm.fuzzy import match_score


def test_tight_match_beats_loose_match():
	tight = match_score("saf", "Safari")
	loose = match_score("saf", "Seafood Finder")
	assert tight is not None
	assert loose is not None
	assert tight > loose


def test_exact_scores():
	# 3 contiguous hits (+15), 3 trailing chars (-3), first char at 0, +18
	assert match_score("saf", "Safari") == 30
	# gap of one before 'a' (-1 +2), 10 trailing chars
	assert match_score("saf", "Seafood Finder") == 19


def test_first_char_offset_is_a_separate_penalty():
	# 'x' found after a gap of 2 costs 2 for the gap and 2 again for the offset
	assert match_score("x", "abx") == -2 - 2 + 6


def test_missing_characters_reject():
	assert match_score("xyz", "Safari") is None


def test_empty_query_scores_zero():
	assert match_score("", "Anything") == 0
	assert match_score("", "") == 0


def test_case_insensitive():
	assert match_score("SAF", "safari") == match_score("saf", "Safari")


def test_full_width_query_matches():
	assert match_score("Ｓａｆ", "Safari") == match_score("saf", "Safari")


@pytest.mark.parametrize(
	("query", "candidate", "matches"),
	[
		("tm", "Terminal", True),
		("mt", "Terminal", False),
		("ttt", "Terminal", False),
		("trml", "Terminal", True),
		("calc", "Calculator", True),
		("rotaluc", "Calculator", False),
		("a", "", False),
	],
)
def test_none_iff_not_a_subsequence(query, candidate, matches):
	assert (match_score(query, candidate) is not None) is matches


def test_shorter_candidate_preferred():
	assert match_score("mail", "Mail") > match_score("mail", "Mailplane")


def test_deterministic():
	assert match_score("fnd", "Finder") == match_score("fnd", "Finder")
