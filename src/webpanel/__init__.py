# src/webpanel/__init__.py
"""Web Panel - nginx sites, Cloudflare DNS and mail hosting administration"""
__version__ = "1.0.0"
