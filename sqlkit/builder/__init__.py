"""Immutable SQL statement builders."""

from sqlkit.builder._base import NULL, Parens, QueryBuilder, Raw, Rendered, compile_neutral, questions, raw
from sqlkit.builder._delete import Delete, delete
from sqlkit.builder._expressions import (
    Condition,
    Operator,
    eq,
    eq_all,
    eq_any,
    gt,
    gt_eq,
    in_,
    is_,
    lt,
    lt_eq,
    not_eq,
)
from sqlkit.builder._insert import Insert, insert
from sqlkit.builder._select import Join, Select, select
from sqlkit.builder._update import Update, update
from sqlkit.builder._where import Fragment, WhereClause, expand_in_arguments

__all__ = (
    "NULL",
    "Condition",
    "Delete",
    "Fragment",
    "Insert",
    "Join",
    "Operator",
    "Parens",
    "QueryBuilder",
    "Raw",
    "Rendered",
    "Select",
    "Update",
    "WhereClause",
    "compile_neutral",
    "delete",
    "eq",
    "eq_all",
    "eq_any",
    "expand_in_arguments",
    "gt",
    "gt_eq",
    "in_",
    "insert",
    "is_",
    "lt",
    "lt_eq",
    "not_eq",
    "questions",
    "raw",
    "select",
    "update",
)
