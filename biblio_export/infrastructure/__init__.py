# biblio_export/infrastructure/__init__.py

"""System infrastructure components for configuration, logging and repository access."""
