# biblio_export/shared/__init__.py

"""Shared utilities used across layers"""
