"""
FILE: chyra/core/__init__.py
PURPOSE: Core domain layer (models, ordering, storage, business logic)
"""
