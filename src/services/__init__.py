"""Shared service layer used across feature modules."""
