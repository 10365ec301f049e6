# vpool_core/core/__init__.py
