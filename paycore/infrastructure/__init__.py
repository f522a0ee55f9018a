"""Persistence and storage backends."""
