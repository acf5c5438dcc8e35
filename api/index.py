# api/index.py
# Vercel serverless function handler for the image converter
import sys
import os

# Add the repository root to the path so the converter modules are importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from image_converter_flask import app  # noqa: E402,F401

# Vercel serves the WSGI callable named 'app'; limits come from the environment
# (IMAGE_MAX_BYTES, IMAGE_MAX_DIMENSION, CONVERSION_TIMEOUT)
