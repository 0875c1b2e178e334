"""
backend — FastAPI application package.

Routers: api/questions.py, api/quizzes.py, api/predict.py, api/webhooks.py, api/health.py
Schemas: schemas/response.py
Entry point: main.py → run with `uvicorn backend.main:app --reload --port 3000`
"""

__version__ = "1.0.0"
