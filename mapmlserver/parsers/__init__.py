"""Parsing of the incoming requests."""
