from mangum import Mangum
import sys
import os

# Serverless entry point; main.py sits one directory up
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from main import app

# Lifespan creates the in-memory stores, so it must run per container
handler = Mangum(app, lifespan="auto")
