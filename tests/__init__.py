"""
Suite de tests para el pipeline de migración PostgreSQL → MongoDB.

Los tests NO se conectan a bases de datos reales, solo validan:
- Sintaxis de código Python
- Implementación correcta de interfaces (BaseSource, BaseTarget)
- Mapeo de tipos y nombres
- Cada etapa del pipeline contra un origen y destino en memoria
"""
