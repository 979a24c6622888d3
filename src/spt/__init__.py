"""Student progress tracker: LeetCode sync, weekly deltas, leaderboards and badges."""
