from __future__ import annotations

from ils.domain.errors import NotFoundError
from ils.domain.models import Customer


class CustomerDirectory:
    def __init__(self, repo):
        self.repo = repo

    def exists(self, customer_id: str, cur=None) -> bool:
        return self.repo.get_customer(str(customer_id), cur=cur) is not None

    def get(self, customer_id: str) -> Customer:
        customer = self.repo.get_customer(str(customer_id))
        if not customer:
            raise NotFoundError("Customer not found.")
        return customer

    def list_customers(self) -> list[Customer]:
        return self.repo.list_customers()
