"""Use cases grouped by area; each module exposes plain functions."""
