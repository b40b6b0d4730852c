# Infrastructure clients
from clients.sqlite_client import SqliteClient, Transaction
