"""
NoteVault.

- backend/: Note API, query engine, database, configuration
"""
