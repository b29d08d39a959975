"""Resolve catalog object coordinates into readable names."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# pg_catalog.pg_type and pg_catalog.pg_class
PG_TYPE_CLASS_ID = 1247
PG_CLASS_CLASS_ID = 1259

_IDENTIFY_SQL = """
    SELECT type, schema, name, identity
    FROM pg_catalog.pg_identify_object(%s::oid, %s::oid, %s::int4)
"""


def normalize_class_id(classid: int, objsubid: int) -> int:
    """Columns are sometimes reported under pg_type; look them up in pg_class."""
    if classid == PG_TYPE_CLASS_ID and objsubid != 0:
        return PG_CLASS_CLASS_ID
    return classid


def raw_identifier(classid, objid, objsubid) -> str:
    return f"classid={classid}, objid={objid}, objsubid={objsubid}"


def resolve(runner, classid: int, objid: int, objsubid: int) -> str:
    """Return a display name for one object, never raising.

    Any failure (object dropped meanwhile, unsupported class, driver error)
    degrades to the raw coordinate string.
    """
    lookup_class = normalize_class_id(classid, objsubid)
    try:
        with runner.savepoint():
            rows = runner.fetch_all(_IDENTIFY_SQL, (lookup_class, objid, objsubid))
    except Exception as e:
        logger.warning(
            "Could not identify object (%s): %s",
            raw_identifier(classid, objid, objsubid),
            e,
        )
        return raw_identifier(classid, objid, objsubid)

    if not rows:
        return raw_identifier(classid, objid, objsubid)
    return format_identity(rows[0]) or raw_identifier(classid, objid, objsubid)


def format_identity(row: dict) -> str:
    obj_type = row.get("type")
    identity = row.get("identity")
    if not identity:
        schema, name = row.get("schema"), row.get("name")
        if not name:
            return ""
        identity = f"{schema}.{name}" if schema else name
    return f"{obj_type} {identity}" if obj_type else identity


def resolve_all(runner, triples: list[dict]) -> list[str]:
    """Resolve q4 rows. Rows may be keyed by name or only by position."""
    names = []
    for row in triples:
        values = list(row.values())
        classid = row.get("classid", values[0] if len(values) > 0 else None)
        objid = row.get("objid", values[1] if len(values) > 1 else None)
        objsubid = row.get("objsubid", values[2] if len(values) > 2 else 0)
        try:
            coordinates = int(classid), int(objid), int(objsubid or 0)
        except (TypeError, ValueError):
            logger.warning(
                "Object coordinates are not numeric (%s)",
                raw_identifier(classid, objid, objsubid),
            )
            names.append(raw_identifier(classid, objid, objsubid))
            continue
        names.append(resolve(runner, *coordinates))
    return names
