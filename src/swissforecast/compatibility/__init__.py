"""Interoperability with external pairing engines."""
