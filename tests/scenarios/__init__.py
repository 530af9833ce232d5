"""Scenario tests for shopcheck.

Every built-in scenario runs end to end against the in-process mock shop
API. No server or network access is needed.
"""
