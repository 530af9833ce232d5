"""Catalog scenarios: product listing, categories and pagination."""

from typing import Any

from ..scenario import Expectation, Scenario, ScenarioContext, Step

PRODUCT_FIELDS = ("id", "nom", "prix_base", "categorie")


def _non_empty_list(data: Any, context: ScenarioContext) -> str | None:
    if not isinstance(data, list):
        return f"expected a list, got {type(data).__name__}"
    if not data:
        return "no categories returned"
    return None


def _has_products(data: Any, context: ScenarioContext) -> str | None:
    if not isinstance(data.get("products"), list):
        return "response has no 'products' list"
    return None


def _no_products(data: Any, context: ScenarioContext) -> str | None:
    products = data.get("products") or []
    if products:
        return f"unknown category returned {len(products)} products"
    return None


def _product_structure(data: Any, context: ScenarioContext) -> str | None:
    products = data.get("products") or []
    if not products:
        return None
    missing = [name for name in PRODUCT_FIELDS if name not in products[0]]
    if missing:
        return f"product is missing fields: {', '.join(missing)}"
    return None


def _catalog_not_empty(data: Any, context: ScenarioContext) -> str | None:
    if not data.get("products"):
        return "no products found; seed the catalog first"
    return None


def build_catalog() -> Scenario:
    return Scenario(
        name="catalog",
        description="Product listing is reachable and not empty",
        steps=[
            Step(
                name="API reachable",
                method="GET",
                path="/products",
                params={"page": 1, "limit": 1},
            ),
            Step(
                name="Products present",
                method="GET",
                path="/products",
                params={"page": 1, "limit": 10},
                check=_catalog_not_empty,
                show=["products.length"],
            ),
        ],
    )


def build_categories() -> Scenario:
    return Scenario(
        name="categories",
        description="Category listing, per-category filtering and pagination",
        steps=[
            Step(
                name="List categories",
                method="GET",
                path="/products/categories",
                check=_non_empty_list,
                capture={"categories": "", "first_category": "0"},
                show=["length"],
            ),
            Step(
                name="Filter by category",
                method="GET",
                path="/products/category/{{ item }}",
                params={"page": 1, "limit": 5},
                foreach="categories",
                check=_has_products,
                show=["products.length", "currentPage", "totalPages"],
            ),
            Step(
                name="First page of two",
                method="GET",
                path="/products/category/{{ first_category }}",
                params={"page": 1, "limit": 2},
                check=_has_products,
                show=["products.length", "totalPages"],
            ),
            Step(
                name="Second page of two",
                method="GET",
                path="/products/category/{{ first_category }}",
                params={"page": 2, "limit": 2},
                check=_has_products,
                show=["products.length"],
            ),
            Step(
                name="Unknown category is empty",
                method="GET",
                path="/products/category/CategorieInexistante",
                params={"page": 1, "limit": 5},
                expect=Expectation(status=None),
                check=_no_products,
            ),
            Step(
                name="Product structure",
                method="GET",
                path="/products/category/{{ first_category }}",
                params={"page": 1, "limit": 1},
                check=_product_structure,
                show=["products.0.id", "products.0.nom", "products.0.prix_base"],
            ),
        ],
    )