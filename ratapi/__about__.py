__version__ = "1.0.0"
__description__ = "ratapi : permission-scoped JSON:API resources on Flask and SQLAlchemy"
