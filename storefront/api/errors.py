# storefront/api/errors.py
from contextlib import contextmanager

from fastapi import HTTPException

from storefront.domain.errors import ExternalServiceError, NotFoundError


@contextmanager
def http_errors():
    """Map storefront errors to HTTP responses."""
    try:
        yield
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        #ValidationError and InvalidTransitionError included
        raise HTTPException(status_code=400, detail=str(e))
    except ExternalServiceError as e:
        raise HTTPException(status_code=502, detail=str(e))
