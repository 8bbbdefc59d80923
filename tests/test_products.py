"""Product catalogue, variants and physical/digital links."""


class TestProducts:
    def test_generated_sku(self, make_product):
        product = make_product()
        assert product["sku"].startswith("SKU")
        assert product["product_type"] == "PHYSICAL"
        assert product["linked_product_id"] is None

    def test_duplicate_sku(self, client, make_product):
        make_product(sku="LAMP-1")
        response = client.post("/products/", json={"name": "Other", "price": 1, "sku": "LAMP-1"})
        assert response.status_code == 409

    def test_update_with_version(self, client, make_product):
        product = make_product()
        response = client.put(f"/products/{product['id']}", json={"price": 55, "version": product["version"]})
        assert response.status_code == 200
        assert response.json()["price"] == 55.0

        stale = client.put(f"/products/{product['id']}", json={"price": 60, "version": product["version"]})
        assert stale.status_code == 409

    def test_list_by_type(self, client, make_product):
        make_product()
        make_product(product_type="DIGITAL", name="E-book")
        digital = client.get("/products/", params={"product_type": "DIGITAL"}).json()
        assert [p["name"] for p in digital] == ["E-book"]

    def test_variants(self, client, make_product):
        product = make_product(sku="LAMP")
        variant = client.post(
            f"/products/{product['id']}/variants",
            json={"name": "Brass", "options": {"finish": "brass"}, "price": 48},
        )
        assert variant.status_code == 201
        assert variant.json()["sku"] == "LAMP-1"
        assert len(client.get(f"/products/{product['id']}/variants").json()) == 1


class TestLinks:
    def test_link_physical_and_digital(self, client, make_product):
        book = make_product(name="Book")
        ebook = make_product(name="E-book", product_type="DIGITAL")

        linked = client.post(f"/products/{book['id']}/link", json={"linked_product_id": ebook["id"]})
        assert linked.status_code == 200
        assert linked.json()["linked_product_id"] == ebook["id"]
        assert client.get(f"/products/{ebook['id']}").json()["linked_product_id"] == book["id"]

    def test_same_type_rejected(self, client, make_product):
        first = make_product()
        second = make_product()
        response = client.post(f"/products/{first['id']}/link", json={"linked_product_id": second["id"]})
        assert response.status_code == 400

    def test_self_link_rejected(self, client, make_product):
        product = make_product()
        response = client.post(f"/products/{product['id']}/link", json={"linked_product_id": product["id"]})
        assert response.status_code == 400

    def test_already_linked(self, client, make_product):
        book = make_product()
        ebook = make_product(product_type="DIGITAL")
        audio = make_product(product_type="DIGITAL")
        client.post(f"/products/{book['id']}/link", json={"linked_product_id": ebook["id"]})
        response = client.post(f"/products/{audio['id']}/link", json={"linked_product_id": book["id"]})
        assert response.status_code == 409

    def test_unlink(self, client, make_product):
        book = make_product()
        ebook = make_product(product_type="DIGITAL")
        client.post(f"/products/{book['id']}/link", json={"linked_product_id": ebook["id"]})

        response = client.delete(f"/products/{ebook['id']}/link")
        assert response.status_code == 200
        assert response.json()["linked_product_id"] is None
        assert client.delete(f"/products/{ebook['id']}/link").status_code == 404
