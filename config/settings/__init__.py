"""
Settings module for the GnuCash rebalancer.

Usage:
    Development: DJANGO_SETTINGS_MODULE=config.settings.development
    Testing: DJANGO_SETTINGS_MODULE=config.settings.testing

Default: development (set in manage.py)
"""
