"""Test doubles for the Galaxy registry."""
