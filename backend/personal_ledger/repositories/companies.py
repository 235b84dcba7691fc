from ..models.company import Company
from .base import SqlAlchemyRepository


class CompanyRepository(SqlAlchemyRepository[Company]):
    model = Company
    label = "company"
    unique_field = "name"

    def get_by_name(self, name: str) -> Company:
        return self._get_by_unique(name)
