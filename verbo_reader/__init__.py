"""Verbo: Bible reader core with navigation, chapter loading and user-data sync."""
