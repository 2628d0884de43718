"""Shared response fragments."""

from enum import Enum

from pydantic import BaseModel


class ToastVariant(str, Enum):
    """Presentation variant of a transient notification."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Toast(BaseModel):
    """Transient notification shown after a page action."""

    title: str
    description: str | None = None
    variant: ToastVariant = ToastVariant.DEFAULT
