"""Adapters connecting the domain to storage backends."""
