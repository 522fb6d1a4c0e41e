"""
Тесты для API endpoints модуля addresses
"""

import tempfile
import unittest

from fastapi.testclient import TestClient

from address_tracker.api.addresses import get_db
from address_tracker.main import app
from address_tracker.models.address import AddressType
from tests.helpers import create_test_database, make_record

USER = "0xabc0000000000000000000000000000000000001"
HOT = "0xabcdef0123456789abcdef0123456789abcdef01"


class TestAddressesAPI(unittest.TestCase):
    """Тесты для API endpoints работы с адресами"""

    def setUp(self):
        """Подготовка к тестам"""
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db = create_test_database(self.tmpdir.name)
        # Переопределяем зависимость get_db
        app.dependency_overrides[get_db] = lambda: self.db
        # Без with: lifespan (подключение к реальной БД) не запускается
        self.client = TestClient(app)

    def tearDown(self):
        """Очистка после тестов"""
        app.dependency_overrides.clear()
        self.db.close()
        self.tmpdir.cleanup()

    def test_get_addresses_empty(self):
        response = self.client.get("/api/addresses")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_get_addresses(self):
        """Тест получения списка адресов"""
        self.db.addresses.store_addresses(
            [make_record(USER, timestamp=1700000000), make_record(HOT, AddressType.HOT_WALLET)]
        )

        response = self.client.get("/api/addresses")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data), 2)
        by_address = {item["address"]: item for item in data}
        self.assertEqual(by_address[USER]["address_type"], 0)
        self.assertEqual(by_address[USER]["timestamp"], 1700000000)
        self.assertEqual(by_address[HOT]["address_type"], 1)

    def test_get_hot_wallet_not_configured(self):
        response = self.client.get("/api/addresses/hot-wallet")

        self.assertEqual(response.status_code, 404)

    def test_get_hot_wallet(self):
        """Тест получения горячего кошелька"""
        self.db.addresses.store_addresses([make_record(HOT, AddressType.HOT_WALLET)])

        response = self.client.get("/api/addresses/hot-wallet")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["address"], HOT)

    def test_get_cold_wallet_not_configured(self):
        response = self.client.get("/api/addresses/cold-wallet")

        self.assertEqual(response.status_code, 404)

    def test_get_address_mixed_case(self):
        """Тест получения адреса в смешанном регистре"""
        self.db.addresses.store_addresses([make_record(HOT, AddressType.HOT_WALLET)])

        response = self.client.get("/api/addresses/0xABCDEF0123456789abcdef0123456789ABCDEF01")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["address"], HOT)
        self.assertEqual(len(data["guid"]), 36)

    def test_get_address_not_found(self):
        response = self.client.get(f"/api/addresses/{USER}")

        self.assertEqual(response.status_code, 404)

    def test_get_address_invalid(self):
        """Тест некорректного адреса"""
        response = self.client.get("/api/addresses/0x1234")

        self.assertEqual(response.status_code, 400)

    def test_address_exists(self):
        self.db.addresses.store_addresses([make_record(HOT, AddressType.HOT_WALLET)])

        found = self.client.get(f"/api/addresses/{HOT.upper().replace('0X', '0x')}/exists")
        missing = self.client.get(f"/api/addresses/{USER}/exists")

        self.assertEqual(found.json(), {"address": HOT, "exists": True, "address_type": 1})
        self.assertEqual(missing.json(), {"address": USER, "exists": False, "address_type": 0})

    def test_db_unavailable(self):
        """Тест: БД еще не подключена - 503"""
        app.dependency_overrides.clear()

        response = self.client.get("/api/addresses")

        self.assertEqual(response.status_code, 503)

    def test_health(self):
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["status"], "healthy")
        self.assertEqual(data["scanner"], "stopped")


if __name__ == "__main__":
    unittest.main()
