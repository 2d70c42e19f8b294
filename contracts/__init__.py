"""Versioned wire contracts for the oversight core API."""
