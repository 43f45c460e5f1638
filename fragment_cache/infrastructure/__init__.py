"""
Infrastructure Module

Backend store adapters and the fragment cache tiers.
"""
