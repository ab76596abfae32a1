"""Shared constants for the Memo application."""

# Maximum number of due cards fetched for one study session
DUE_BATCH_SIZE = 20

# Cards due again within this many minutes return to the end of the session queue
REQUEUE_THRESHOLD_MINUTES = 30

# Keyboard shortcuts for ratings in the terminal study loop
RATING_KEYS = {"1": "again", "2": "hard", "3": "good", "4": "easy"}
