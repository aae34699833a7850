"""DB-API connection adapter and the transaction engine."""

from sqlkit.driver.connection import DBAPIHandle, DBAPITransaction, PreparedStatement
from sqlkit.driver.transaction import PhysicalTransaction, SavepointNamer, Transaction

__all__ = (
    "DBAPIHandle",
    "DBAPITransaction",
    "PhysicalTransaction",
    "PreparedStatement",
    "SavepointNamer",
    "Transaction",
)
