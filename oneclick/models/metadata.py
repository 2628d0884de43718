"""Shared metadata for all remote store tables."""

from sqlalchemy import MetaData

metadata = MetaData()
