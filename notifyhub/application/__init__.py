"""Application layer orchestrating domain rules over the infrastructure."""
