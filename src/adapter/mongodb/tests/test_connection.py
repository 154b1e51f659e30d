"""Unit tests for the cached MongoDB client."""

import unittest
from unittest.mock import MagicMock, patch

from pymongo.errors import ConnectionFailure, PyMongoError

from adapter.mongodb import connection


class TestGetMongoClient(unittest.TestCase):

    def setUp(self):
        patcher = patch.multiple(
            connection,
            MONGO_URL='mongodb://localhost:27017',
            _client_cache=None,
            _connection_attempted=False,
            _connection_failed=False,
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    @patch('adapter.mongodb.connection.MongoClient')
    def test_connects_once_and_reuses_healthy_client(self, mock_client_cls):
        client = mock_client_cls.return_value

        first = connection.get_mongodb_client()
        second = connection.get_mongodb_client()

        self.assertIs(first, client)
        self.assertIs(second, client)
        mock_client_cls.assert_called_once()
        self.assertTrue(mock_client_cls.call_args.kwargs['tz_aware'])

    @patch('adapter.mongodb.connection.MongoClient')
    def test_reconnects_when_cached_client_fails_ping(self, mock_client_cls):
        stale, fresh = MagicMock(), MagicMock()
        mock_client_cls.side_effect = [stale, fresh]
        connection.get_mongodb_client()
        stale.admin.command.side_effect = PyMongoError('gone')

        self.assertIs(connection.get_mongodb_client(), fresh)

    @patch('adapter.mongodb.connection.MongoClient')
    def test_initial_failure_is_not_retried(self, mock_client_cls):
        mock_client_cls.return_value.admin.command.side_effect = ConnectionFailure('refused')

        self.assertIsNone(connection.get_mongodb_client())
        self.assertIsNone(connection.get_mongodb_client())
        mock_client_cls.assert_called_once()

    @patch('adapter.mongodb.connection.MongoClient')
    def test_missing_url_returns_none(self, mock_client_cls):
        with patch.object(connection, 'MONGO_URL', None):
            self.assertIsNone(connection.get_mongodb_client())
        mock_client_cls.assert_not_called()


if __name__ == '__main__':
    unittest.main()
