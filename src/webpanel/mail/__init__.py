# src/webpanel/mail/__init__.py
"""Mail hosting: postfix, dovecot and opendkim provisioning"""
