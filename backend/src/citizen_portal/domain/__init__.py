"""Domain layer: pure intake logic (hashing, rate limiting, spam scoring, attachments)."""
