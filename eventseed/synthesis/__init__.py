"""Lexicon and per-batch record generators run in worker processes."""
