# tourapi/api/deps/roles.py
from fastapi import Depends, HTTPException

from tourapi.core.security import get_caller
from tourapi.schemas.auth import Caller


def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return caller


def require_guide_or_admin(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.is_guide_or_admin:
        raise HTTPException(status_code=403, detail="Guide or Admin access required")
    return caller
