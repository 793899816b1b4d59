# biblio_export/shared/utils/__init__.py

"""Shared utilities"""
