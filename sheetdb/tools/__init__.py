"""Operator tools for SheetDB."""
