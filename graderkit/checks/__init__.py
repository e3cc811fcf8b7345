"""Concrete grading checks."""

from .listing import ListingCheck, folder_listing
from .regex import RegexCheck
from .source_run import SourceRunCheck

__all__ = ["ListingCheck", "RegexCheck", "SourceRunCheck", "folder_listing"]
