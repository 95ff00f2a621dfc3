# tourapi/db/base.py
from tourapi.db.base_class import Base  # noqa: F401

# Importa todos los modelos que definen tablas para que queden en Base.metadata
from tourapi.models import user  # noqa: F401
from tourapi.models import tour  # noqa: F401
from tourapi.models import collaboration  # noqa: F401
from tourapi.models import survey  # noqa: F401
