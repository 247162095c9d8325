"""
comicgeeks - Release listings and issue details from League of Comic Geeks.

An async client and extraction engine that fetches weekly release
listings and comic detail pages, normalizes the markup, and turns it
into structured comic records.
"""

__version__ = "0.1.0"
__app_name__ = "comicgeeks"
