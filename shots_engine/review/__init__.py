"""Screenshot review artifacts.

Pairs raw captures with framed images, writes a JSON manifest plus a static
HTML report, and keeps the approval ledger (``approved.json``) that gates
uploads.
"""
