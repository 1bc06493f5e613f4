"""
Serving — FastAPI adapter for the ingestion and question pipelines.

Routing and multipart parsing live here; all behaviour lives in the
orchestrators so the app stays a thin shell.
"""
