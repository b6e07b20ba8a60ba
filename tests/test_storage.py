"""
Unit tests for the storage backends.
"""

import shutil
import tempfile
import unittest
from pathlib import Path

import httpx

from tilegarden.config import ConfigManager
from tilegarden.errors import StorageError
from tilegarden.storage import DuckDBStorage, FileStorage, HttpStorage, InMemoryStorage, create_storage


class StorageContract:
    """Behavior every backend must share. Mixed into TestCase classes."""

    def make_storage(self):
        raise NotImplementedError

    def test_read_missing_key(self):
        self.assertIsNone(self.storage.read("absent"))
        self.assertFalse(self.storage.exists("absent"))

    def test_write_then_read(self):
        self.storage.write("garden-builder-data", b'{"version": "2.0.0"}')
        self.assertEqual(self.storage.read("garden-builder-data"), b'{"version": "2.0.0"}')
        self.assertTrue(self.storage.exists("garden-builder-data"))

    def test_overwrite(self):
        self.storage.write("slot", b"first")
        self.storage.write("slot", b"second")
        self.assertEqual(self.storage.read("slot"), b"second")

    def test_remove(self):
        self.storage.write("slot", b"data")
        self.storage.remove("slot")
        self.assertIsNone(self.storage.read("slot"))

    def test_remove_missing_key_is_not_an_error(self):
        self.storage.remove("never-written")

    def test_keys_are_independent(self):
        self.storage.write("garden-snapshot:a", b"A")
        self.storage.write("garden-snapshot:b", b"B")
        self.assertEqual(self.storage.read("garden-snapshot:a"), b"A")
        self.assertEqual(self.storage.read("garden-snapshot:b"), b"B")


class TestInMemoryStorage(StorageContract, unittest.TestCase):

    def setUp(self):
        self.storage = InMemoryStorage()

    def test_initial_contents(self):
        storage = InMemoryStorage({"slot": b"seed"})
        self.assertEqual(storage.read("slot"), b"seed")
        self.assertEqual(storage.keys(), ["slot"])


class TestFileStorage(StorageContract, unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.storage = FileStorage(str(Path(self.temp_dir) / "slots"))

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_directory_created_on_write(self):
        self.storage.write("slot", b"data")
        self.assertTrue(self.storage.path_for("slot").exists())

    def test_no_temporary_files_left(self):
        self.storage.write("slot", b"data")
        names = [p.name for p in self.storage.directory.iterdir()]
        self.assertEqual(names, ["slot.json"])

    def test_unsafe_keys_are_sanitized(self):
        path = self.storage.path_for("../etc/passwd")
        self.assertEqual(path.parent, self.storage.directory)
        self.assertEqual(path.name, "..%2Fetc%2Fpasswd.json")

    def test_empty_key_rejected(self):
        with self.assertRaises(StorageError):
            self.storage.path_for("")

    def test_similar_keys_use_distinct_files(self):
        self.storage.write("garden-snapshot:a_b", b"first")
        self.storage.write("garden-snapshot:a:b", b"second")

        self.assertEqual(len(list(self.storage.directory.iterdir())), 2)
        self.assertEqual(self.storage.read("garden-snapshot:a_b"), b"first")
        self.assertEqual(self.storage.read("garden-snapshot:a:b"), b"second")


class TestDuckDBStorage(StorageContract, unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = Path(self.temp_dir) / "test.duckdb"
        self.storage = DuckDBStorage(str(self.db_path))
        self.storage.connect()

    def tearDown(self):
        self.storage.disconnect()
        shutil.rmtree(self.temp_dir)

    def test_database_initialization(self):
        """Test database creation and table initialization."""
        self.assertTrue(self.db_path.exists())
        self.assertIsNotNone(self.storage.connection)

    def test_list_keys(self):
        self.storage.write("b", b"2")
        self.storage.write("a", b"1")
        self.assertEqual(self.storage.list_keys(), ["a", "b"])

    def test_data_survives_reconnect(self):
        self.storage.write("slot", b"\x00binary\xff")
        self.storage.disconnect()

        with DuckDBStorage(str(self.db_path)) as reopened:
            self.assertEqual(reopened.read("slot"), b"\x00binary\xff")

    def test_requires_connection(self):
        storage = DuckDBStorage(":memory:")
        with self.assertRaises(StorageError):
            storage.read("slot")


class FakeSlotService:
    """In-process stand-in for the remote slot endpoint."""

    def __init__(self):
        self.slots = {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        key = request.url.path.rsplit("/", 1)[-1]

        if request.method == "GET":
            if key not in self.slots:
                return httpx.Response(404)
            return httpx.Response(200, content=self.slots[key])
        if request.method == "PUT":
            self.slots[key] = request.content
            return httpx.Response(204)
        if request.method == "DELETE":
            if key not in self.slots:
                return httpx.Response(404)
            del self.slots[key]
            return httpx.Response(204)
        return httpx.Response(405)


class TestHttpStorage(StorageContract, unittest.TestCase):

    def setUp(self):
        self.service = FakeSlotService()
        client = httpx.Client(transport=httpx.MockTransport(self.service))
        self.storage = HttpStorage("http://garden.test/api/", client=client)

    def tearDown(self):
        self.storage.close()

    def test_request_paths(self):
        self.storage.write("garden-builder-data", b"x")
        self.assertEqual(self.service.requests[-1], ("PUT", "/api/slots/garden-builder-data"))

    def test_server_error_raises_storage_error(self):
        def failing(request):
            return httpx.Response(500)

        storage = HttpStorage("http://garden.test", client=httpx.Client(transport=httpx.MockTransport(failing)))
        with self.assertRaises(StorageError):
            storage.read("slot")
        with self.assertRaises(StorageError):
            storage.write("slot", b"data")

    def test_connection_error_raises_storage_error(self):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        storage = HttpStorage("http://garden.test", client=httpx.Client(transport=httpx.MockTransport(unreachable)))
        with self.assertRaises(StorageError):
            storage.read("slot")


class TestCreateStorage(unittest.TestCase):
    """Test building backends from configuration."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = Path(self.temp_dir) / "config.yaml"

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def config_with(self, text):
        self.config_path.write_text(text)
        return ConfigManager(str(self.config_path))

    def test_memory_backend(self):
        storage = create_storage(self.config_with("storage:\n  backend: memory\n"))
        self.assertIsInstance(storage, InMemoryStorage)

    def test_file_backend(self):
        directory = Path(self.temp_dir) / "slots"
        storage = create_storage(self.config_with(f"storage:\n  backend: file\n  directory: '{directory}'\n"))

        self.assertIsInstance(storage, FileStorage)
        self.assertEqual(storage.directory, directory)

    def test_duckdb_backend_is_connected(self):
        db_path = Path(self.temp_dir) / "garden.duckdb"
        storage = create_storage(self.config_with(f"storage:\n  backend: duckdb\n  database: '{db_path}'\n"))
        try:
            self.assertIsInstance(storage, DuckDBStorage)
            storage.write("slot", b"data")
            self.assertEqual(storage.read("slot"), b"data")
        finally:
            storage.disconnect()

    def test_http_backend(self):
        storage = create_storage(self.config_with("storage:\n  backend: http\n  base_url: http://garden.test\n"))
        try:
            self.assertIsInstance(storage, HttpStorage)
            self.assertEqual(storage.base_url, "http://garden.test")
        finally:
            storage.close()

    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            create_storage(self.config_with("storage:\n  backend: floppy\n"))


if __name__ == '__main__':
    unittest.main()
