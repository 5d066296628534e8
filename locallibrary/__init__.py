"""Local Library: a server-rendered catalog of books, authors, genres and copies."""

__version__ = "1.0.0"
