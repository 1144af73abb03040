"""
Orígenes relacionales del pipeline.

Cada origen implementa la interfaz BaseSource y se carga dinámicamente en
sqlmigra.py según config.SOURCE_BACKEND:

    'postgres' → pipeline.sources.postgres.PostgresSource
"""
