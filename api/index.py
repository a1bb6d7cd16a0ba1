"""
Serverless entry point for the SLA Escalation Engine

Each POST /sla/check invocation runs one SLA check. The in-process
scheduler is disabled; an external cron calls the endpoint instead.
"""
import sys
import os

# Add parent directory to path
parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if parent_dir not in sys.path:
    sys.path.insert(0, parent_dir)

# Set environment variables for serverless
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("SLA_EVALUATION_INTERVAL", "0")  # Disable scheduler in serverless

from mangum import Mangum
from src.main import app

# Lifespan builds the evaluation service, so keep it on
handler = Mangum(app, lifespan="auto")
