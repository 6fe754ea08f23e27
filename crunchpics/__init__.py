"""
crunchpics: catalog picture collections, find duplicates, tag by folder.
"""

__version__ = "0.2.0"
