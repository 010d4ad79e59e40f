# src/webpanel/core/__init__.py
"""Core panel functionality: errors, step execution and metadata storage"""
