"""
Serverless function wrapper for the FastAPI app
"""
import sys
from pathlib import Path

# Add backend to Python path
backend_path = Path(__file__).parent.parent / "backend"
sys.path.insert(0, str(backend_path))

from mangum import Mangum

from code_finder.main import app

# Mangum converts Lambda-style (event, context) invocations into ASGI calls
mangum_handler = Mangum(app, lifespan="off")


def handler(event, context=None):
    """Serverless function handler"""
    return mangum_handler(event, context)
