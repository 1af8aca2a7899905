"""Declarative base for the storage tables (one table today: stored_blobs)."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
