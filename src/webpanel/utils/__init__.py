# src/webpanel/utils/__init__.py
"""Utility modules for configuration, logging, settings and shell commands"""
