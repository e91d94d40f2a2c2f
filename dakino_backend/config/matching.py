"""Thresholds for matching ticket lines against the product catalog."""

# Scores at or below this never become the tracked best candidate.
DEFAULT_MATCH_CANDIDATE_FLOOR = 0.4

# The best candidate must score strictly above this to be accepted as partial.
DEFAULT_MATCH_ACCEPT_THRESHOLD = 0.6
