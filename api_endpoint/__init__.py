"""
Onboarding Agent - API Endpoint

This package provides the FastAPI server the config editor uses to read and
replace the agent and onboarding documents.

Components:
- config_server: GET/POST /api/config/{agent|onboarding}

Usage:
    # Start the server
    python -m api_endpoint.config_server --port=8000
"""

from .config_server import create_app

__all__ = ['create_app']
__version__ = '1.0.0'
