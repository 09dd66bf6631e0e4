"""Public interface for the ``expense_import`` package.

Re-exports the import API and its models; no runtime logic lives here.
"""

from .api import import_file, import_rows
from .models import (
    Category,
    ClassificationMap,
    Expense,
    ImportResult,
    OracleOutcome,
    RawRow,
)
from .oracle import OpenAIClassificationOracle, classify_tokens, suggest_category
from .reader import Table, UnreadableFileError, read_table, read_table_bytes
from .resolver import CategoryResolver, Resolution
from .schema import SchemaDecision, detect_schema, extract_category_tokens

__all__ = [
    # API
    "import_file",
    "import_rows",
    "classify_tokens",
    "suggest_category",
    "read_table",
    "read_table_bytes",
    "detect_schema",
    "extract_category_tokens",
    # Components
    "CategoryResolver",
    "OpenAIClassificationOracle",
    # Models / types
    "Category",
    "ClassificationMap",
    "Expense",
    "ImportResult",
    "OracleOutcome",
    "RawRow",
    "Resolution",
    "SchemaDecision",
    "Table",
    "UnreadableFileError",
]

__version__ = "0.1.0"
