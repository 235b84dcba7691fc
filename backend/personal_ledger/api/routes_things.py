from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.errors import NotFoundError
from ..repositories.things import ThingRepository
from ..schemas.common import MAX_OFFSET, MAX_PAGE_SIZE
from ..schemas.things import ThingIn, ThingOut

router = APIRouter(prefix="/things", tags=["things"])


def get_thing_repository(db: Session = Depends(get_db)) -> ThingRepository:
    return ThingRepository(db)


@router.post("", response_model=ThingOut, status_code=201)
def create_thing(
    payload: ThingIn,
    repo: ThingRepository = Depends(get_thing_repository),
):
    return repo.create(payload)


@router.get("", response_model=list[ThingOut])
def list_things(
    response: Response,
    limit: int | None = Query(None, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0, le=MAX_OFFSET),
    email: str | None = None,
    repo: ThingRepository = Depends(get_thing_repository),
):
    """
    Index of things, oldest first.

    - `limit`/`offset` page through the collection; no limit returns everything.
    - `email` narrows the result to the (at most one) thing with that email.
    - `X-Total-Count` carries the number of matching things.
    """
    if email is not None:
        try:
            things = [repo.get_by_email(email.strip())]
        except NotFoundError:
            things = []
        response.headers["X-Total-Count"] = str(len(things))
        return things

    response.headers["X-Total-Count"] = str(repo.count())
    return repo.list(limit=limit, offset=offset)


@router.get("/{thing_id}", response_model=ThingOut)
def read_thing(
    thing_id: UUID,
    repo: ThingRepository = Depends(get_thing_repository),
):
    return repo.get_by_id(thing_id)


@router.put("/{thing_id}", response_model=ThingOut)
def update_thing(
    thing_id: UUID,
    payload: ThingIn,
    repo: ThingRepository = Depends(get_thing_repository),
):
    return repo.update(thing_id, payload)


@router.delete("/{thing_id}", status_code=204)
def delete_thing(
    thing_id: UUID,
    repo: ThingRepository = Depends(get_thing_repository),
):
    repo.delete(thing_id)
    return Response(status_code=204)
