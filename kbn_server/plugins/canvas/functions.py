"""Common Canvas functions available on the server."""

from typing import Any

import structlog

from kbn_server.plugins.registries import ServerFunction

logger = structlog.get_logger(__name__)


def _clog(context: Any, args: dict[str, Any]) -> Any:
    logger.info("clog", context=context)
    return context


def _context(context: Any, args: dict[str, Any]) -> Any:
    return context


def _string(context: Any, args: dict[str, Any]) -> str:
    values = args.get("value", [])
    if not isinstance(values, list):
        values = [values]
    return "".join(str(v) for v in values)


def _eq(context: Any, args: dict[str, Any]) -> bool:
    return context == args.get("value")


def _all(context: Any, args: dict[str, Any]) -> bool:
    conditions = args.get("condition", [])
    return all(bool(c) for c in conditions)


def _any(context: Any, args: dict[str, Any]) -> bool:
    conditions = args.get("condition", [])
    return any(bool(c) for c in conditions)


DEMO_ROWS = [
    {"time": 1527811200000, "cost": 32.81, "username": "aevans2e", "country": "US", "project": "elasticsearch", "percent_uptime": 0.98},
    {"time": 1527811200000, "cost": 25.19, "username": "bmorris1", "country": "CN", "project": "kibana", "percent_uptime": 0.96},
    {"time": 1527897600000, "cost": 41.02, "username": "cchan4b", "country": "JP", "project": "logstash", "percent_uptime": 0.99},
    {"time": 1527984000000, "cost": 18.44, "username": "dwilson9", "country": "DE", "project": "beats", "percent_uptime": 0.93},
]

DEMO_COLUMNS = [
    {"name": "time", "type": "date"},
    {"name": "cost", "type": "number"},
    {"name": "username", "type": "string"},
    {"name": "country", "type": "string"},
    {"name": "project", "type": "string"},
    {"name": "percent_uptime", "type": "number"},
]


def _demodata(context: Any, args: dict[str, Any]) -> dict[str, Any]:
    rows = [dict(row) for row in DEMO_ROWS]
    if args.get("type") == "shirts":
        columns = [{"name": "size", "type": "string"}, {"name": "color", "type": "string"}]
        rows = [{"size": size, "color": "blue"} for size in ("S", "M", "L", "XL")]
        return {"type": "datatable", "columns": columns, "rows": rows}
    return {"type": "datatable", "columns": list(DEMO_COLUMNS), "rows": rows}


common_functions = [
    ServerFunction(
        name="clog",
        help="Outputs the context to the server log",
        fn=_clog,
    ),
    ServerFunction(
        name="context",
        help="Returns whatever you pass into it",
        fn=_context,
    ),
    ServerFunction(
        name="string",
        help="Concatenates all of the arguments into a single string",
        fn=_string,
        args={"value": {"types": ["string", "number", "boolean"], "multi": True}},
        type="string",
    ),
    ServerFunction(
        name="eq",
        help="Returns whether the context is equal to the argument",
        fn=_eq,
        args={"value": {"types": ["boolean", "number", "string", "null"]}},
        type="boolean",
    ),
    ServerFunction(
        name="all",
        help="Returns true if all of the conditions are true",
        fn=_all,
        args={"condition": {"types": ["boolean"], "multi": True}},
        type="boolean",
    ),
    ServerFunction(
        name="any",
        help="Returns true if any of the conditions are true",
        fn=_any,
        args={"condition": {"types": ["boolean"], "multi": True}},
        type="boolean",
    ),
    ServerFunction(
        name="demodata",
        help="A mock data set that includes project CI times with usernames, countries and run phases",
        fn=_demodata,
        args={"type": {"types": ["string"], "default": "ci"}},
        context={"types": ["filter"]},
        type="datatable",
    ),
]
