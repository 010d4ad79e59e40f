# src/webpanel/api/__init__.py
"""HTTP API for the web panel"""
