from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.errors import NotFoundError
from ..repositories.companies import CompanyRepository
from ..schemas.common import MAX_OFFSET, MAX_PAGE_SIZE
from ..schemas.companies import CompanyIn, CompanyOut

router = APIRouter(prefix="/companies", tags=["companies"])


def get_company_repository(db: Session = Depends(get_db)) -> CompanyRepository:
    return CompanyRepository(db)


@router.post("", response_model=CompanyOut, status_code=201)
def create_company(
    payload: CompanyIn,
    repo: CompanyRepository = Depends(get_company_repository),
):
    return repo.create(payload)


@router.get("", response_model=list[CompanyOut])
def list_companies(
    response: Response,
    limit: int | None = Query(None, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0, le=MAX_OFFSET),
    name: str | None = None,
    repo: CompanyRepository = Depends(get_company_repository),
):
    """
    Index of companies, oldest first.

    - `limit`/`offset` page through the collection; no limit returns everything.
    - `name` narrows the result to the (at most one) company with that name.
    - `X-Total-Count` carries the number of matching companies.
    """
    if name is not None:
        try:
            companies = [repo.get_by_name(name.strip())]
        except NotFoundError:
            companies = []
        response.headers["X-Total-Count"] = str(len(companies))
        return companies

    response.headers["X-Total-Count"] = str(repo.count())
    return repo.list(limit=limit, offset=offset)


@router.get("/{company_id}", response_model=CompanyOut)
def read_company(
    company_id: UUID,
    repo: CompanyRepository = Depends(get_company_repository),
):
    return repo.get_by_id(company_id)


@router.put("/{company_id}", response_model=CompanyOut)
def update_company(
    company_id: UUID,
    payload: CompanyIn,
    repo: CompanyRepository = Depends(get_company_repository),
):
    return repo.update(company_id, payload)


@router.delete("/{company_id}", status_code=204)
def delete_company(
    company_id: UUID,
    repo: CompanyRepository = Depends(get_company_repository),
):
    repo.delete(company_id)
    return Response(status_code=204)
