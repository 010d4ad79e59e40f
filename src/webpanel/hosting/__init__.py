# src/webpanel/hosting/__init__.py
"""Website hosting: nginx virtual hosts, certificates and site provisioning"""
