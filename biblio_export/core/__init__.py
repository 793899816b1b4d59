# biblio_export/core/__init__.py

"""Core domain layer"""
