"""Shared time constants for test record factories."""

T0 = 1_700_000_000_000  # 11/14/2023 22:13:20 UTC, epoch millis
HOUR = 60 * 60 * 1000
DAY = 24 * HOUR
