"""
Destinos documentales del pipeline.

Cada destino implementa la interfaz BaseTarget y se carga dinámicamente en
sqlmigra.py según config.TARGET_BACKEND:

    'mongo' → pipeline.targets.mongo.MongoTarget
"""
