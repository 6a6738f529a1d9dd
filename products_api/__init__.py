"""Products REST API: FastAPI routes over a SQLAlchemy products table."""
