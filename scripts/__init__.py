"""Maintenance scripts for the RCA knowledge base."""
