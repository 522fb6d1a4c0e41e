"""
Тесты для команд CLI
"""

import unittest
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from address_tracker.cli import app


class TestCLI(unittest.TestCase):
    """Тесты для команд address-tracker"""

    def setUp(self):
        self.runner = CliRunner()

    @patch("address_tracker.database.Database.connect")
    def test_migrate(self, mock_connect):
        """Тест применения миграций из указанного каталога"""
        db = MagicMock()
        db.execute_sql_migration.return_value = ["a.sql", "b.sql"]
        mock_connect.return_value = db

        result = self.runner.invoke(app, ["migrate", "-m", "/srv/migrations"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Применено миграций: 2", result.output)
        db.execute_sql_migration.assert_called_once_with("/srv/migrations")
        db.close.assert_called_once()

    @patch("address_tracker.database.Database.connect")
    def test_migrate_failure_closes_db(self, mock_connect):
        """Тест: соединение закрывается и при ошибке миграции"""
        db = MagicMock()
        db.execute_sql_migration.side_effect = RuntimeError("bad sql")
        mock_connect.return_value = db

        result = self.runner.invoke(app, ["migrate", "-m", "/srv/migrations"])

        self.assertNotEqual(result.exit_code, 0)
        self.assertIsInstance(result.exception, RuntimeError)
        db.close.assert_called_once()

    @patch("address_tracker.cli.signal.signal")
    @patch("address_tracker.services.scanner.Scanner.create")
    def test_index(self, mock_create, mock_signal):
        """Тест запуска и остановки сканера"""
        scanner = MagicMock()
        scanner.start.return_value = [MagicMock()]
        mock_create.return_value = scanner

        result = self.runner.invoke(app, ["index"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Адресов в БД: 1", result.output)
        scanner.start.assert_called_once()
        scanner.stop.assert_called_once()
        self.assertEqual(mock_signal.call_count, 2)


if __name__ == "__main__":
    unittest.main()
