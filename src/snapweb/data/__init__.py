"""Entity, row and query layer over site-backed storage.

Sites that expose structured data (for example
[FileSite][snapweb.sites.file_site.FileSite], which stores rows as CSV in
its sandbox) implement ``get_rows_impl``, ``save_row_impl`` and
``delete_row_impl``; everything here is backend independent.

Attributes:
    Entity: Named, ordered collection of properties with a primary key.
    Property: One typed column, possibly a relation to another entity.
    Schema: The entities of one site.
    Condition: ``property <op> value`` predicate.
    ConditionList: Conditions chained with AND/OR.
    ConditionParser: Parses ``name == 'x' and age > 3`` style text.
    Query: Entity name plus optional condition.
    Row: One record with ``exists``/``modified`` tracking.
    DataTable: Identity cache of rows per entity.
    WebSiteImporter: Turns nested dict graphs into rows.
"""

from .condition import Condition, ConditionList, ConditionParser, Operator
from .entity import Entity, Property, PropertyType, Schema
from .importer import WebSiteImporter
from .query import Query
from .row import Row
from .table import DataTable


__all__ = [
    "Condition",
    "ConditionList",
    "ConditionParser",
    "DataTable",
    "Entity",
    "Operator",
    "Property",
    "PropertyType",
    "Query",
    "Row",
    "Schema",
    "WebSiteImporter",
]
