from functools import lru_cache
from unicodedata import normalize

CONTIGUOUS_BONUS = 5
NEAR_CONTIGUOUS_BONUS = 2
PER_CHAR_BONUS = 6


@lru_cache(maxsize=4096)
def fold(text: str) -> str:
	"""NFKC then lowercase, so full-width 'Ｓａｆ' compares equal to 'saf'."""
	return normalize("NFKC", text).lower()


def match_score(query: str, candidate: str) -> int | None:
	"""Score query as an in-order subsequence of candidate; None when it is not one.

	Higher is tighter. Gaps cost their length, adjacent hits earn a bonus, the unmatched
	tail and the offset of the first query character both count against the candidate.
	"""
	if not (q := fold(query)):
		return 0

	text = fold(candidate)
	score = 0
	cursor = 0
	for ch in q:
		found = text.find(ch, cursor)
		if found < 0:
			return None

		gap = found - cursor
		score -= gap
		if gap == 0:
			score += CONTIGUOUS_BONUS
		elif gap == 1:
			score += NEAR_CONTIGUOUS_BONUS

		cursor = found + 1

	score -= len(text) - cursor
	score -= text.find(q[0])
	return score + len(q) * PER_CHAR_BONUS
