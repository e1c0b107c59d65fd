"""
QueryBuilder: turns a query descriptor into parameterized SQL.

This is the single source of truth for statement construction. The preview
endpoint and the execution engine both go through ``build`` so the SQL a user
previews is exactly the SQL that runs.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.query.schemas import (
    CompiledQuery,
    FilterOperator,
    FilterSpec,
    QueryDescriptor,
    SortDirection,
    SortSpec,
)
from app.query.sanitizer import coerce_literal, quote_identifier

logger = logging.getLogger(__name__)

COMPARISON_OPERATORS = {
    FilterOperator.EQ: "=",
    FilterOperator.NEQ: "!=",
    FilterOperator.GT: ">",
    FilterOperator.LT: "<",
    FilterOperator.GTE: ">=",
    FilterOperator.LTE: "<=",
}

# (prefix, suffix) wildcards around the pattern value
LIKE_PATTERNS = {
    FilterOperator.CONTAINS: ("%", "%"),
    FilterOperator.STARTS_WITH: ("", "%"),
    FilterOperator.ENDS_WITH: ("%", ""),
}


class QueryBuilder:
    """
    Compiles descriptors for one target dialect.

    Windowing depends on the dialect: Oracle pages with nested ROWNUM,
    SQL Server with ROW_NUMBER(), everything else with LIMIT/OFFSET.
    """

    ROW_NUMBER_COLUMN = "rnum__"

    def __init__(self, dialect: str = "default"):
        self.dialect = (dialect or "default").lower()

    # ===== MAIN ENTRY POINT =====

    def build(self, descriptor: QueryDescriptor, columns: Optional[Sequence[str]] = None) -> CompiledQuery:
        """
        Build the base, count and windowed statements for a descriptor.

        ``columns`` overrides the descriptor's column list (the engine passes
        the catalog's columns when the descriptor selects none). An empty
        list selects every column.
        """
        table = quote_identifier(descriptor.table)
        column_names = list(descriptor.columns if columns is None else columns)
        select_list = ", ".join(quote_identifier(column) for column in column_names) or "*"

        where_clause, parameters = self.compile_filters(descriptor.filters)
        order_clause = self.compile_order(descriptor.sorting)

        from_clause = f"FROM {table}"
        if where_clause:
            from_clause += f" WHERE {where_clause}"

        base_sql = f"SELECT {select_list} {from_clause}"
        if order_clause:
            base_sql += f" ORDER BY {order_clause}"

        count_sql = f"SELECT COUNT(*) AS total_count FROM (SELECT {select_list} {from_clause}) count_q"

        page_sql, window_parameters, row_number_column = self._build_window(
            base_sql, select_list, from_clause, order_clause, descriptor.page, descriptor.page_size
        )

        logger.debug("Compiled query for %s: %s (parameters: %s)", table, page_sql, sorted(parameters))

        return CompiledQuery(
            base_sql=base_sql,
            count_sql=count_sql,
            page_sql=page_sql,
            parameters=parameters,
            page_parameters={**parameters, **window_parameters},
            columns=column_names,
            row_number_column=row_number_column,
        )

    # ===== PREDICATES =====

    def compile_filters(self, filters: Sequence[FilterSpec]) -> Tuple[str, Dict[str, Any]]:
        """Conjunctive WHERE fragment plus its bound parameters; uncompilable filters are dropped."""
        fragments: List[str] = []
        parameters: Dict[str, Any] = {}

        for index, spec in enumerate(filters):
            compiled = self._compile_filter(index, spec)
            if compiled is None:
                continue
            fragment, bound = compiled
            fragments.append(fragment)
            parameters.update(bound)

        return " AND ".join(fragments), parameters

    def _compile_filter(self, index: int, spec: FilterSpec) -> Optional[Tuple[str, Dict[str, Any]]]:
        if not spec.field or not spec.operator:
            return None

        operator = FilterOperator.resolve(spec.operator)
        if operator is None:
            logger.debug("Skipping filter on %s: unknown operator %r", spec.field, spec.operator)
            return None

        column = quote_identifier(spec.field)

        if operator == FilterOperator.IS_NULL:
            return f"{column} IS NULL", {}
        if operator == FilterOperator.IS_NOT_NULL:
            return f"{column} IS NOT NULL", {}

        if spec.value is None:
            return None

        # Indexed by position in the filter list, so names never collide
        name = f"val{index}"

        if operator in COMPARISON_OPERATORS:
            return f"{column} {COMPARISON_OPERATORS[operator]} :{name}", {name: coerce_literal(spec.value)}

        prefix, suffix = LIKE_PATTERNS[operator]
        return f"UPPER({column}) LIKE UPPER(:{name})", {name: f"{prefix}{spec.value}{suffix}"}

    # ===== ORDERING =====

    def compile_order(self, sorting: Sequence[SortSpec]) -> str:
        """ORDER BY terms in input order; entries without a field or a known direction are dropped."""
        terms = []
        for spec in sorting:
            if not spec.field:
                continue
            try:
                direction = SortDirection(str(spec.direction or SortDirection.ASC.value).strip().upper())
            except ValueError:
                continue
            terms.append(f"{quote_identifier(spec.field)} {direction.value}")
        return ", ".join(terms)

    # ===== PAGINATION =====

    def _build_window(
        self,
        base_sql: str,
        select_list: str,
        from_clause: str,
        order_clause: str,
        page: int,
        page_size: int,
    ) -> Tuple[str, Dict[str, Any], Optional[str]]:
        if page_size <= 0:
            return base_sql, {}, None

        min_row = (page - 1) * page_size + 1
        max_row = page * page_size
        rn = self.ROW_NUMBER_COLUMN

        if self.dialect == "oracle":
            sql = (
                f"SELECT * FROM (SELECT page_q.*, ROWNUM AS {rn} FROM ({base_sql}) page_q "
                f"WHERE ROWNUM <= :max_row) WHERE {rn} >= :min_row"
            )
            return sql, {"min_row": min_row, "max_row": max_row}, rn

        if self.dialect == "mssql":
            over = order_clause or "(SELECT NULL)"
            sql = (
                f"SELECT * FROM (SELECT {select_list}, ROW_NUMBER() OVER (ORDER BY {over}) AS {rn} "
                f"{from_clause}) page_q WHERE {rn} BETWEEN :min_row AND :max_row ORDER BY {rn}"
            )
            return sql, {"min_row": min_row, "max_row": max_row}, rn

        sql = f"{base_sql} LIMIT :row_limit OFFSET :row_offset"
        return sql, {"row_limit": page_size, "row_offset": min_row - 1}, None
