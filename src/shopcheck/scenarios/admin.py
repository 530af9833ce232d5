"""Admin dashboard scenario: vendor product CRUD."""

from ..scenario import Expectation, Scenario, Step
from .auth import DASHBOARD, login_step


def build_admin_products() -> Scenario:
    """Create, read, update and delete a product as a vendor.

    Leaves nothing behind when every step passes; a failure midway leaves the
    created product on the server.
    """
    auth = {"auth": "token", "client_type": DASHBOARD}
    return Scenario(
        name="admin-products",
        description="Vendor product CRUD through the admin API",
        variables={
            "vendor_email": "enzovendeur@test.com",
            "vendor_password": "password123",
            "product_name": "shopcheck-{{ run_id }}",
        },
        steps=[
            login_step(
                "Login as dashboard client",
                email_var="vendor_email",
                password_var="vendor_password",
                client_type=DASHBOARD,
            ),
            Step(
                name="List vendor products",
                method="GET",
                path="/admin/products",
                show=["length"],
                **auth,
            ),
            Step(
                name="Create product",
                method="POST",
                path="/admin/products",
                body={
                    "nom": "{{ product_name }}",
                    "description": "Created by shopcheck",
                    "prix_base": 19.99,
                    "categorie": "Test",
                },
                expect=Expectation(status=201),
                capture={"product_id": "id"},
                show=["id"],
                **auth,
            ),
            Step(
                name="Fetch product",
                method="GET",
                path="/admin/products/{{ product_id }}",
                show=["nom", "prix_base"],
                **auth,
            ),
            Step(
                name="Update price",
                method="PUT",
                path="/admin/products/{{ product_id }}",
                body={"prix_base": 24.99},
                show=["prix_base"],
                **auth,
            ),
            Step(
                name="Delete product",
                method="DELETE",
                path="/admin/products/{{ product_id }}",
                **auth,
            ),
            Step(
                name="Deleted product is gone",
                method="GET",
                path="/admin/products/{{ product_id }}",
                expect=Expectation.rejected(404),
                **auth,
            ),
        ],
    )
