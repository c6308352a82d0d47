"""retain: spaced-repetition scheduling and mastery tracking for study material."""
