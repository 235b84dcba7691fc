from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["ping"])


@router.get("/ping", response_class=PlainTextResponse)
def ping():
    """
    Liveness probe used by clients to confirm the api is up.

    Must not touch the database; answers 200 while the pool is exhausted.
    """
    return "Pong."
