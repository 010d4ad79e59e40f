# src/webpanel/dns/__init__.py
"""DNS provider integration"""
