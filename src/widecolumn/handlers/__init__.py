from .config import TableConfig as TableConfig
from .table import Table as Table
