# tourapi/db/types.py
"""
Tipos portables: JSONB / ARRAY en PostgreSQL, JSON genérico en SQLite (tests).
"""
from sqlalchemy import JSON, Integer
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

JSONType = JSON().with_variant(JSONB(), "postgresql")
IntArray = JSON().with_variant(ARRAY(Integer), "postgresql")
