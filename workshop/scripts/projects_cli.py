"""
Command line access to the projects database.

Usage:
  python -m workshop.scripts.projects_cli init
  python -m workshop.scripts.projects_cli add --name "Hang a door" --estimated-hours 4 --difficulty 3
  python -m workshop.scripts.projects_cli list
  python -m workshop.scripts.projects_cli show 1
  python -m workshop.scripts.projects_cli add-step 1 "Remove old hinges"
  python -m workshop.scripts.projects_cli add-material 1 "Door hinge" --num-required 3 --cost 4.50
  python -m workshop.scripts.projects_cli add-category 1 "Doors"

Pass --db to work on a database other than the configured one.
"""
from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from decimal import Decimal
from functools import partial

from workshop.db import get_conn, init_schema
from workshop.errors import DatabaseError
from workshop.logs import LogContext, ensure_log_schema, setup_logging
from workshop.models import Material, Project
from workshop.services.project_svc import ProjectService


def _print(obj) -> None:
    print(json.dumps(obj, ensure_ascii=False, default=str, indent=2))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="projects")
    ap.add_argument("--db", default=None, help="SQLite file (defaults to config.yaml / WORKSHOP_DB_PATH)")
    ap.add_argument("--log-level", default=None)
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init", help="create tables if missing")

    add = sub.add_parser("add", help="insert a project")
    add.add_argument("--name", required=True)
    add.add_argument("--estimated-hours", type=Decimal)
    add.add_argument("--actual-hours", type=Decimal)
    add.add_argument("--difficulty", type=int)
    add.add_argument("--notes")

    sub.add_parser("list", help="list projects by name")

    show = sub.add_parser("show", help="show one project with its children")
    show.add_argument("project_id", type=int)

    step = sub.add_parser("add-step")
    step.add_argument("project_id", type=int)
    step.add_argument("text")

    mat = sub.add_parser("add-material")
    mat.add_argument("project_id", type=int)
    mat.add_argument("name")
    mat.add_argument("--num-required", type=int)
    mat.add_argument("--cost", type=Decimal)

    cat = sub.add_parser("add-category")
    cat.add_argument("project_id", type=int)
    cat.add_argument("name")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.cmd == "init":
        try:
            init_schema(args.db)
        except DatabaseError as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
        _print({"message": "ok"})
        return 0

    svc = ProjectService(partial(get_conn, args.db) if args.db else get_conn)
    try:
        if args.cmd == "list":
            _print([asdict(p) for p in svc.fetch_all()])
            return 0
        if args.cmd == "show":
            project = svc.fetch_by_id(args.project_id)
            if project is None:
                _print({"message": "project_not_found", "project_id": args.project_id})
                return 1
            _print(project.to_dict())
            return 0
    except DatabaseError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    # write commands leave an operation_log entry
    log = LogContext(args.cmd.upper().replace("-", "_"), user="cli", db_path=args.db)
    try:
        ensure_log_schema(args.db)
        if args.cmd == "add":
            project = svc.insert(Project(
                project_name=args.name,
                estimated_hours=args.estimated_hours,
                actual_hours=args.actual_hours,
                difficulty=args.difficulty,
                notes=args.notes,
            ))
            log.set_entity("PROJECT", str(project.project_id))
            out = project.to_dict()
        elif args.cmd == "add-step":
            log.set_entity("PROJECT", str(args.project_id))
            out = asdict(svc.add_step(args.project_id, args.text))
        elif args.cmd == "add-material":
            log.set_entity("PROJECT", str(args.project_id))
            material = Material(material_name=args.name, num_required=args.num_required, cost=args.cost)
            out = asdict(svc.add_material(args.project_id, material))
        else:
            log.set_entity("PROJECT", str(args.project_id))
            out = asdict(svc.add_category(args.project_id, args.name))
    except (ValueError, DatabaseError) as e:
        log.try_write("ERROR", str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1 if isinstance(e, ValueError) else 2

    log.set_after(out)
    log.try_write("OK")
    _print({"message": "ok", "item": out})
    return 0


if __name__ == "__main__":
    sys.exit(main())
