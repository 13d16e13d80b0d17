"""HTTP routes of the accounts application."""
