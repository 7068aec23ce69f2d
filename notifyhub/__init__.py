"""Multi-channel notification service package.

The package re-exports nothing; import from the layer modules directly.
"""
