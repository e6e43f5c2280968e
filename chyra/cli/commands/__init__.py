"""
FILE: chyra/cli/commands/__init__.py
PURPOSE: CLI command modules (each registers its commands on import)
"""
