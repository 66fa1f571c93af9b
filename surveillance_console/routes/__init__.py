"""
Routes module for the Surveillance Console.
"""
from .api import api_bp
