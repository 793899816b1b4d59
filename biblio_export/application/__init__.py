# biblio_export/application/__init__.py

"""Application layer: export orchestration and result models"""
