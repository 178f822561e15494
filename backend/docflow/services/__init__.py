# backend/docflow/services/__init__.py
