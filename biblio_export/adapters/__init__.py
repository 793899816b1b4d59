# biblio_export/adapters/__init__.py

"""Adapters: format specifications, HTTP API and command line interface"""
