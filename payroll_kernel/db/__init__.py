"""Persistence foundations: declarative base, types and engine management."""
