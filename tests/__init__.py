"""
Test suite for the recipe import backend.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_recipe_import_service.py -v
"""
