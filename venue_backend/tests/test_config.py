import unittest

from venue_backend.app.config import ConfigError, Settings


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        s = Settings.from_env({})
        self.assertEqual(s.port, 5001)
        self.assertEqual(s.layout_history_max, 200)
        self.assertEqual(s.layout_history_retention_days, 90)
        self.assertEqual(s.cors_origins, ("*",))
        self.assertEqual(s.database_url(), "mysql+mysqlconnector://root@localhost:3306/venue_hall")

    def test_db_parts_are_quoted(self):
        s = Settings.from_env({"DB_USER": "hall", "DB_PASSWORD": "p@ss:word", "DB_HOST": "db", "DB_NAME": "shows"})
        self.assertEqual(s.database_url(), "mysql+mysqlconnector://hall:p%40ss%3Aword@db:3306/shows")

    def test_database_url_override(self):
        s = Settings.from_env({"DATABASE_URL": "sqlite:///tmp.db", "DB_HOST": "ignored"})
        self.assertEqual(s.database_url(), "sqlite:///tmp.db")

    def test_history_limits_and_origins(self):
        s = Settings.from_env(
            {"LAYOUT_HISTORY_MAX": "10", "LAYOUT_HISTORY_RETENTION_DAYS": "7", "CORS_ORIGINS": "http://a, http://b"}
        )
        self.assertEqual((s.layout_history_max, s.layout_history_retention_days), (10, 7))
        self.assertEqual(s.cors_origins, ("http://a", "http://b"))

    def test_bad_integer(self):
        with self.assertRaises(ConfigError):
            Settings.from_env({"PORT": "eighty"})


if __name__ == "__main__":
    unittest.main()
