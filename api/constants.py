"""
API Constants
"""

API_VERSION = "v1"
