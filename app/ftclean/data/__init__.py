"""Bundled data files for ftclean."""
