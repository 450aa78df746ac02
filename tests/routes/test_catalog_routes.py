"""Tests for product, laboratory and category endpoints"""

from flask_app.models import Lab, Product


class TestLabsAndCategories:
    def test_create_and_list_labs(self, client):
        response = client.post("/api/labs", json={"name": " bago "})

        assert response.status_code == 201
        assert response.get_json()["lab"]["name"] == "BAGO"
        assert client.get("/api/labs").get_json()["items"] == [{"id": Lab.query.one().id, "lab": "BAGO"}]

    def test_lab_duplicate_and_missing_name(self, client, lab_factory):
        lab_factory("BAGO")

        assert client.post("/api/labs", json={"name": "Bago"}).status_code == 409
        assert client.post("/api/labs", json={"name": "  "}).status_code == 400

    def test_categories(self, client, category_factory):
        category_factory("ANALGESICOS")

        created = client.post("/api/categories", json={"name": "antibioticos"})

        assert created.status_code == 201
        names = [item["category"] for item in client.get("/api/categories").get_json()["items"]]
        assert names == ["ANALGESICOS", "ANTIBIOTICOS"]


class TestProducts:
    def test_create_product_by_lab_name(self, client, lab_factory, category_factory):
        lab_factory("BAGO")
        category_factory("ANALGESICOS")

        response = client.post(
            "/api/products",
            json={
                "code": "P1",
                "desc": "Ibuprofeno",
                "lab": "bago",
                "category": "analgesicos",
                "medinor_price": "75",
                "public_price": "100",
            },
        )

        assert response.status_code == 201
        product = response.get_json()["product"]
        assert product["lab"] == "BAGO"
        assert product["category"] == "ANALGESICOS"
        assert product["imageUrl"] == "P1"
        assert product["discount"] == -0.25

    def test_create_requires_code_desc_and_lab(self, client):
        response = client.post("/api/products", json={"code": "P1", "desc": "X"})

        assert response.status_code == 400
        assert response.get_json()["message"] == "Code, description and laboratory are required."

    def test_create_unknown_lab(self, client):
        response = client.post("/api/products", json={"code": "P1", "desc": "X", "lab": "NOPE"})

        assert response.status_code == 400
        assert response.get_json()["message"] == "Laboratory 'NOPE' does not exist."

    def test_create_duplicate_code(self, client, product_factory):
        product = product_factory(code="P1")

        response = client.post("/api/products", json={"code": "P1", "desc": "X", "labId": product.lab_id})

        assert response.status_code == 409

    def test_list_and_get(self, client, product_factory):
        product_factory(code="P2")
        first = product_factory(code="P1")

        assert [item["code"] for item in client.get("/api/products").get_json()["items"]] == ["P1", "P2"]
        assert client.get(f"/api/products/{first.id}").get_json()["product"]["code"] == "P1"
        assert client.get("/api/products/999").status_code == 404

    def test_update_recomputes_discount(self, client, product_factory):
        product = product_factory(code="P1")

        response = client.put(f"/api/products/{product.id}", json={"medinor_price": "50"})

        assert response.status_code == 200
        assert response.get_json()["product"]["discount"] == -0.5

    def test_update_code_clash(self, client, product_factory):
        product_factory(code="P1")
        other = product_factory(code="P2")

        response = client.put(f"/api/products/{other.id}", json={"code": "P1"})

        assert response.status_code == 409
        assert response.get_json()["message"] == "The code 'P1' is already used by another product."

    def test_update_rejects_empty_description(self, client, product_factory):
        product = product_factory(code="P1")

        assert client.put(f"/api/products/{product.id}", json={"desc": " "}).status_code == 400

    def test_delete(self, client, product_factory):
        product = product_factory(code="P1")

        response = client.delete(f"/api/products/{product.id}")

        assert response.status_code == 200
        assert Product.query.count() == 0
        assert client.delete(f"/api/products/{product.id}").status_code == 404
