"""Integrations with external collaborators: storage, hashing, mail."""
