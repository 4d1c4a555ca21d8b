"""Regenerate review artifacts when screenshots or their config change.

Change detection is a polling snapshot of file mtimes/sizes; every relevant
change funnels into one ``GenerationCoalescer`` so regeneration runs
serially and bursts of changes collapse into one follow-up run.
"""
