from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.repositories.interfaces import IProductRepository

__all__ = ["IProductRepository", "ProductDjangoRepository"]
