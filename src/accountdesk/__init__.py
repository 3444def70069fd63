"""ABOUTME: accountdesk - user accounts with email confirmation and password reset
ABOUTME: Package root, exposes the version string used by the CLI"""

__version__ = "0.1.0"
